from order_service.book.client import BookClient, create_book_client
from order_service.book.models import Book

__all__ = ["Book", "BookClient", "create_book_client"]
