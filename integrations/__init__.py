from .google_books import BookData, BookLookupError, search_books, get_book_details
