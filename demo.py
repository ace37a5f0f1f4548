import argparse
import logging
import os

from dotenv import load_dotenv

from athena_connector import AthenaConnector, RunConfig, AthenaConnectorError

# Load .env to get AWS credentials and Athena settings
load_dotenv()


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--table", required=True, help="Table to read from")
    parser.add_argument("--fields", required=True, help="Comma-separated column names")
    parser.add_argument("--limit", default="10", help="Row limit (0 for none)")
    parser.add_argument("--verbose", action="store_true", help="Enable aggressive logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    region = os.getenv("AWS_REGION")
    database = os.getenv("ATHENA_DATABASE")
    output_location = os.getenv("ATHENA_OUTPUT_LOCATION")
    if not (region and database and output_location):
        print("Error: AWS_REGION, ATHENA_DATABASE and ATHENA_OUTPUT_LOCATION must be set.")
        return

    request = {
        "fields": [{"name": name.strip()} for name in args.fields.split(",") if name.strip()],
        "configParams": {
            "tableName": args.table,
            "rowLimit": args.limit,
            "awsAccessKeyId": os.getenv("AWS_ACCESS_KEY_ID"),
            "awsSecretAccessKey": os.getenv("AWS_SECRET_ACCESS_KEY"),
            "awsRegion": region,
            "databaseName": database,
            "outputLocation": output_location,
        },
    }

    connector = AthenaConnector(RunConfig(verbose=args.verbose, log_sql=True, log_results=True))

    print(f"--- Fetching {args.fields} from {database}.{args.table} ---")
    try:
        result = connector.fetch_data(request)
    except AthenaConnectorError as e:
        print(f"\n[Error] Fetch failed: {e}")
        return

    print(" | ".join(f"{f.name} ({f.data_type})" for f in result.fields))
    for row in result.rows:
        print(" | ".join(str(v) for v in row.values))
    print(f"\n{len(result.rows)} rows (execution {result.execution_id})")


if __name__ == "__main__":
    main()
