#!/usr/bin/env python3
"""
Script to add a book to LMS through its REST API.
"""
import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from lms.core.client import LMSClient
from lms.core.exceptions import LMSAPIError


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Add a book to LMS"
    )
    parser.add_argument(
        "--title",
        type=str,
        required=True,
        help="Title of the book"
    )
    parser.add_argument(
        "--author",
        type=str,
        required=True,
        help="Author of the book"
    )
    parser.add_argument(
        "--copies",
        type=int,
        default=1,
        help="Number of physical copies (default: 1)"
    )
    parser.add_argument(
        "--api-url",
        type=str,
        default=LMSClient.API_URL,
        help=f"LMS API base URL (default: {LMSClient.API_URL})"
    )

    args = parser.parse_args(argv)

    if args.copies < 1:
        print(f"Error: --copies must be at least 1, got {args.copies}")
        return 1

    try:
        book = LMSClient(api_url=args.api_url).add_book(
            title=args.title,
            author=args.author,
            total_copies=args.copies
        )
    except LMSAPIError as e:
        print(f"✗ Adding book failed: {e}")
        return 1

    print(f"✓ Added book {book['id']}: {book['title']} by {book['author']} "
          f"({book['available_copies']}/{book['total_copies']} available)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
