#!/usr/bin/env python3
"""
Index a schema.sql file into the schema vector table.

Usage:
    python scripts/index_schema.py path/to/schema.sql [--append]
"""

import argparse
import asyncio

from _bootstrap import indexing_service


async def main(schema_path: str, replace: bool) -> None:
    async with indexing_service() as service:
        stats = await service.index_schema_file(schema_path, replace=replace)
    print(f"✓ Indexed {stats.chunks_indexed} schema chunks into {stats.table_name}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("schema_path", help="Path to the schema .sql file")
    parser.add_argument("--append", action="store_true", help="Keep existing rows instead of clearing the table")
    args = parser.parse_args()

    asyncio.run(main(args.schema_path, replace=not args.append))
