import math
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Form, Query
from fastapi.responses import RedirectResponse

from app.adapters.packages.base import AbstractPackageRepository
from app.api.dependencies import get_package_repository, get_search_ranker, get_update_gateway
from app.core.rate_limit import get_client_identity
from app.schemas.packages import PackageOut, SearchResponse
from app.services.search_ranker import SearchQuery, SearchRanker
from app.services.update_gateway import UpdateGateway

router = APIRouter(tags=["Packages"])


@router.post(
    "/update",
    status_code=302,
    response_class=RedirectResponse,
    responses={
        400: {"description": "Missing or blank package name"},
        403: {"description": "Too many update requests from this client"},
        404: {"description": "No package with that exact name"},
    },
)
def update_package(
    name: Annotated[str | None, Form(description="Package name to refresh")] = None,
    name_param: Annotated[str | None, Query(alias="name", include_in_schema=False)] = None,
    identity: str = Depends(get_client_identity),
    gateway: UpdateGateway = Depends(get_update_gateway),
) -> RedirectResponse:
    """Refresh one package's metadata, then redirect to its search result.

    The name may be sent as a form field or a query parameter. Each client
    identity may trigger a limited number of refreshes per hour.

    Returns:
        302 redirect to ``/search?q=<canonical name>``.

    Raises:
        ValidationAppError, PackageNotFoundAppError, ThrottledAppError:
            mapped to 400 / 404 / 403 by the global handlers.
    """
    raw_name = name if name is not None else name_param
    outcome = gateway.trigger(raw_name, identity)
    return RedirectResponse(outcome.redirect_to, status_code=302)


@router.get("/search", response_model=SearchResponse)
def search_packages(
    q: Annotated[str | None, Query(description="Text matched against name and display name")] = None,
    type: Annotated[Literal["any", "plugin", "theme"], Query(description="Package type filter")] = "any",
    active_only: Annotated[bool, Query(description="Exclude inactive packages")] = False,
    page: Annotated[int, Query(description="1-based page number")] = 1,
    ranker: SearchRanker = Depends(get_search_ranker),
    repository: AbstractPackageRepository = Depends(get_package_repository),
) -> SearchResponse:
    """Search the package catalogue.

    Pages past the last one return an empty result list, not an error.
    """
    query = SearchQuery.from_params(q=q, type=type, active_only=active_only, page=page)
    plan = ranker.plan(query)
    result = repository.search(plan)

    return SearchResponse(
        q=plan.text,
        type=type,
        active_only=plan.active_only,
        page=plan.page,
        page_size=plan.page_size,
        total=result.total,
        total_pages=max(1, math.ceil(result.total / plan.page_size)),
        results=[PackageOut.from_record(record) for record in result.items],
    )
