"""Shared factory definitions for fieldforge tests.

Factory Organization:
- library_factories: Book, Author, User and Image record shapes, each with a
  ``define_*_factory`` helper that fixes the field names and takes the
  defaults and traits a test wants

Usage Examples:
    BookFactory = define_book_factory(
        default_fields={
            "id": lazy(lambda ctx: f"Book-{ctx.seq}"),
            "title": "Yuyushiki",
            "author": None,
        }
    )
    book = await BookFactory.build()
"""

from .library_factories import (
    AUTHOR_FIELD_NAMES,
    BOOK_FIELD_NAMES,
    IMAGE_FIELD_NAMES,
    USER_FIELD_NAMES,
    define_author_factory,
    define_book_factory,
    define_image_factory,
    define_user_factory,
)

__all__ = [
    "AUTHOR_FIELD_NAMES",
    "BOOK_FIELD_NAMES",
    "IMAGE_FIELD_NAMES",
    "USER_FIELD_NAMES",
    "define_author_factory",
    "define_book_factory",
    "define_image_factory",
    "define_user_factory",
]
