class ListResponseMixin:
    @classmethod
    def list_response(cls, db, *args, **kwargs):
        items = cls.list(db, *args, **kwargs)
        limit = kwargs.get("limit")
        offset = kwargs.get("offset")
        if limit is None and len(args) >= 2:
            limit, offset = args[-2], args[-1]
        return {"items": items, "count": len(items), "limit": limit, "offset": offset}
