import logging
from typing import Iterator, List, Optional

from ..db.transport import AthenaTransport
from ..state import RawRow, ResultPage

logger = logging.getLogger(__name__)


def page_to_rows(page: ResultPage) -> List[RawRow]:
    """Keys every cell of a page by the column at the same position."""
    rows = []
    for cells in page.rows:
        rows.append(
            {column: cells[i] if i < len(cells) else None for i, column in enumerate(page.column_names)}
        )
    return rows


class ResultFetcher:
    """
    Pages through the results of a finished execution.

    The results API returns the column labels as the first row of the first
    page only. fetch_all_rows() removes that row exactly once, no matter how
    many pages follow, so the returned list holds
    sum(rows per page) - 1 entries.
    """

    def __init__(
        self,
        transport: AthenaTransport,
        page_size: Optional[int] = None,
        drop_header: bool = True,
    ):
        self.transport = transport
        self.page_size = page_size
        self.drop_header = drop_header

    def iter_pages(self, region: str, execution_id: str) -> Iterator[ResultPage]:
        """
        Yields pages lazily, following continuation tokens until a page has none.
        """
        next_token = None
        while True:
            page = self.transport.get_query_results(
                region,
                execution_id,
                next_token=next_token,
                max_results=self.page_size,
            )
            yield page

            next_token = page.next_token
            if not next_token:
                return

    def fetch_all_rows(self, region: str, execution_id: str) -> List[RawRow]:
        rows: List[RawRow] = []
        pages = 0
        for page in self.iter_pages(region, execution_id):
            pages += 1
            rows.extend(page_to_rows(page))

        if self.drop_header and rows:
            rows.pop(0)

        logger.debug(f"Fetched {len(rows)} rows in {pages} page(s) for execution {execution_id}")
        return rows
