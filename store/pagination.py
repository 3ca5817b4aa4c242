from rest_framework.pagination import PageNumberPagination


class StandardResultsPagination(PageNumberPagination):
    """Page-number pagination, 20 per page, ``?limit=`` up to 100."""
    page_size = 20
    page_size_query_param = 'limit'
    max_page_size = 100
