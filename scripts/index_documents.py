#!/usr/bin/env python3
"""
Index every *.html file of a directory into the document vector table.

Usage:
    python scripts/index_documents.py path/to/html_dir [--append] [--chunk-size 400] [--overlap 80]
"""

import argparse
import asyncio

from _bootstrap import indexing_service


async def main(directory: str, replace: bool, chunk_size: int, overlap: int) -> None:
    async with indexing_service() as service:
        stats = await service.index_html_directory(
            directory, replace=replace, chunk_size=chunk_size, overlap=overlap
        )
    print(
        f"✓ Indexed {stats.chunks_indexed} chunks from {stats.files_processed} HTML files "
        f"into {stats.table_name}"
    )


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("directory", help="Directory containing .html files")
    parser.add_argument("--append", action="store_true", help="Keep existing rows instead of clearing the table")
    parser.add_argument("--chunk-size", type=int, default=400)
    parser.add_argument("--overlap", type=int, default=80)
    args = parser.parse_args()

    asyncio.run(main(args.directory, replace=not args.append, chunk_size=args.chunk_size, overlap=args.overlap))
