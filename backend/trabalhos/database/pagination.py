from flask import request


class Pagination:
    """Janela LIMIT/OFFSET da listagem administrativa de submissões."""

    def __init__(self, page=1, per_page=50, total=0):
        self.page = max(1, page)
        self.per_page = max(1, per_page)
        self.total = max(0, total)

    @property
    def offset(self):
        return (self.page - 1) * self.per_page

    def to_dict(self):
        return {
            'page': self.page,
            'per_page': self.per_page,
            'total': self.total,
            'pages': -(-self.total // self.per_page),
        }


def get_page_args(default_per_page=50, max_per_page=200):
    """Lê ?page= e ?per_page= da request; valores inválidos caem no padrão."""
    try:
        page = max(1, int(request.args.get('page', 1)))
    except (TypeError, ValueError):
        page = 1

    try:
        per_page = max(1, min(int(request.args.get('per_page', default_per_page)), max_per_page))
    except (TypeError, ValueError):
        per_page = default_per_page

    return page, per_page
