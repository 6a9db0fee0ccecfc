from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class AdminListPagination(PageNumberPagination):
    """Page/limit pagination used by the admin listings."""

    page_size = 10
    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data):
        total = self.page.paginator.count
        return Response(
            {
                "count": len(data),
                "total": total,
                "pagination": {
                    "page": self.page.number,
                    "limit": self.get_page_size(self.request),
                    "total_pages": self.page.paginator.num_pages,
                },
                "data": data,
            }
        )
