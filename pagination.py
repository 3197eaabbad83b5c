from dataclasses import dataclass
from math import ceil


def get_offset(page_num: int, limit: int) -> int:
    """Rows to skip for a 1-indexed page number"""
    return (page_num - 1) * limit if page_num > 1 else 0


@dataclass
class Pagination:
    """What the pagination controls need to render one page of a list"""
    total_rows: int
    limit: int
    page_num: int = 1
    pagination_root: str = "tasks/manage"
    record_name_plural: str = "records"
    include_showing_statement: bool = True
    num_links_per_page: int = 10

    @property
    def num_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return ceil(self.total_rows / self.limit)

    @property
    def current_page(self) -> int:
        return min(max(self.page_num, 1), max(self.num_pages, 1))

    @property
    def showing_statement(self) -> str:
        if self.total_rows == 0:
            return f"There are no {self.record_name_plural} to display."
        first = get_offset(self.current_page, self.limit) + 1
        last = min(first + self.limit - 1, self.total_rows)
        return f"Showing {first} to {last} of {self.total_rows} {self.record_name_plural}."

    def page_url(self, page: int) -> str:
        return f"/{self.pagination_root}/{page}"

    def links(self) -> list[dict]:
        """Page links around the current page, with first/prev/next/last"""
        if self.num_pages <= 1:
            return []

        current = self.current_page
        half = self.num_links_per_page // 2
        start = max(current - half, 1)
        end = min(start + self.num_links_per_page - 1, self.num_pages)
        start = max(end - self.num_links_per_page + 1, 1)

        links = []
        if current > 1:
            links.append({"label": "First", "url": self.page_url(1), "current": False})
            links.append({"label": "Prev", "url": self.page_url(current - 1), "current": False})
        for page in range(start, end + 1):
            links.append({"label": str(page), "url": self.page_url(page), "current": page == current})
        if current < self.num_pages:
            links.append({"label": "Next", "url": self.page_url(current + 1), "current": False})
            links.append({"label": "Last", "url": self.page_url(self.num_pages), "current": False})
        return links
