from sqlalchemy import or_

MAX_PER_PAGE = 100


def apply_pagination_and_search(query, model, search_term, search_columns, page=1, per_page=10):
    """
    Case-insensitive substring search over `search_columns` (any one may
    match), then a Flask-SQLAlchemy page of the result. Out-of-range page
    numbers give an empty page rather than a 404.
    """
    if search_term:
        query = query.filter(or_(*(
            getattr(model, column).ilike(f"%{search_term.strip()}%") for column in search_columns
        )))

    page = page if page and page > 0 else 1
    per_page = min(per_page, MAX_PER_PAGE) if per_page and per_page > 0 else 10

    return query.paginate(page=page, per_page=per_page, error_out=False)


def pagination_meta(paginated):
    return {
        "total": paginated.total,
        "page": paginated.page,
        "pages": paginated.pages,
        "per_page": paginated.per_page,
    }
