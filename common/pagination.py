from rest_framework.pagination import PageNumberPagination


class StandardPagination(PageNumberPagination):
    """Page-number pagination with an adjustable page size via ``limit``."""

    page_size = 20
    page_size_query_param = "limit"
    max_page_size = 100


class MessagePagination(StandardPagination):
    page_size = 50
