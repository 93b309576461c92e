from __future__ import annotations

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardResultsSetPagination(PageNumberPagination):
    """Page-number pagination shared by every list endpoint.

    ``?page=N&page_size=M``; ``page_size`` is capped at 100.
    """

    page_size_query_param = "page_size"
    max_page_size = 100

    def get_paginated_response(self, data) -> Response:
        return Response(
            {
                "results": data,
                "pagination": {
                    "current_page": self.page.number,
                    "total_pages": self.page.paginator.num_pages,
                    "total_items": self.page.paginator.count,
                    "has_next_page": self.page.has_next(),
                    "has_prev_page": self.page.has_previous(),
                },
                "next": self.get_next_link(),
                "previous": self.get_previous_link(),
            }
        )
