"""
FastHTML Web Adapter

Serves a FormFactory on a FastHTML route:

```python
from starform.adapters.fasthtml import register_form

app, rt = fast_app()
register_form(rt, "/articles/edit", article_form, Article,
              lambda: SQLModelPersistence.opener(engine))
```

GET renders the form for the entity given by the `id` query parameter (a new
entity without one). POST validates and saves, then redirects with 303, or
re-renders the form with its errors.
"""

import logging
from typing import Any, Callable, ContextManager, Optional, Union
from urllib.parse import urlencode

from fasthtml.core import form2dict, parse_form
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import RedirectResponse

from ..factory import BoundForm, FormFactory
from ..persistence import EntityTypeRef, PersistenceLayer

logger = logging.getLogger(__name__)

PersistenceOpener = Callable[[], ContextManager[PersistenceLayer]]
SuccessUrl = Union[str, Callable[[Any], str], None]


def form_url(path: str, key: Any = None) -> str:
    if key is None or key == "":
        return path
    return f"{path}?{urlencode({'id': key})}"


def register_form(
    rt,
    path: str,
    factory: FormFactory,
    entity_type: EntityTypeRef,
    open_persistence: PersistenceOpener,
    success_url: SuccessUrl = None,
):
    """
    Register GET and POST handlers for a form on `path`.

    Args:
        rt: FastHTML route decorator (`app.route` / the `rt` of `fast_app()`)
        path: URL path of the form
        factory: Factory building the bound form
        entity_type: Entity type edited by the form
        open_persistence: Returns a context manager yielding a fresh persistence
            layer; called once per request
        success_url: Redirect target after a successful save, or a callable
            receiving the saved entity. Defaults to the form URL of the entity.

    Returns:
        The (get, post) handler functions
    """

    def _create(persistence: PersistenceLayer, key: Optional[str]) -> BoundForm:
        key = key or None
        bound = factory.create(persistence, entity_type, key, action=form_url(path, key))
        if key is not None and bound.entity is None:
            raise HTTPException(404, f"No record with id {key}")
        return bound

    def _redirect_target(bound: BoundForm) -> str:
        if callable(success_url):
            return success_url(bound.entity)
        if success_url:
            return success_url
        return form_url(path, bound.binder.key)

    async def show_form(req: Request):
        with open_persistence() as persistence:
            bound = _create(persistence, req.query_params.get("id"))
            return bound.render()

    async def submit_form(req: Request):
        data = form2dict(await parse_form(req))
        with open_persistence() as persistence:
            bound = _create(persistence, req.query_params.get("id"))
            result = bound.process(data)
            if result is not None and result.success:
                target = _redirect_target(bound)
                logger.debug(f"Form '{factory.name}' saved, redirecting to {target}")
                return RedirectResponse(target, status_code=303)
            return bound.render()

    rt(path, methods=["get"])(show_form)
    rt(path, methods=["post"])(submit_form)
    return show_form, submit_form
