import logging
import uuid
from typing import Optional

from ..db.transport import AthenaTransport

logger = logging.getLogger(__name__)


class ExecutionSubmitter:
    def __init__(self, transport: AthenaTransport):
        self.transport = transport

    def submit(
        self,
        region: str,
        database: str,
        query: str,
        output_location: str,
        workgroup: Optional[str] = None,
    ) -> str:
        """
        Starts asynchronous execution of the query and returns the execution id.

        A fresh idempotency token is generated for every call. Transport errors
        propagate as-is; nothing is retried here.
        """
        client_token = str(uuid.uuid4())
        execution_id = self.transport.start_query_execution(
            region,
            client_token=client_token,
            database=database,
            query=query,
            output_location=output_location,
            workgroup=workgroup,
        )
        logger.debug(f"Submitted query as execution {execution_id} (token {client_token})")
        return execution_id
