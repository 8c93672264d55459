#!/usr/bin/env python3
"""
Create the feedback table with its secondary indexes.

Usage:
    python scripts/create_feedback_table.py [--table TABLE]
"""

import argparse
import logging
import os
import sys

import boto3
from botocore.exceptions import ClientError

# Add the src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from utils.table_schema import feedback_table_definition

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Create the feedback table")
    parser.add_argument(
        "--table",
        default=os.environ.get("FEEDBACK_TABLE", "buzzguard-feedback-dev"),
        help="DynamoDB table name",
    )
    args = parser.parse_args()

    region = os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
    dynamodb = boto3.resource("dynamodb", region_name=region)

    try:
        table = dynamodb.create_table(**feedback_table_definition(args.table))
        table.wait_until_exists()
        logger.info("Created table %s", args.table)
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceInUseException":
            logger.info("Table %s already exists", args.table)
            return
        logger.error("AWS error: %s", e.response["Error"]["Message"])
        sys.exit(1)


if __name__ == "__main__":
    main()
