"""
Example Routes: Style and Response Example Corpora

Both example kinds hang off a creator:
- /creators/{creator_id}/style-examples
- /creators/{creator_id}/response-examples

Each kind supports filtered paginated listing, CRUD, CSV export and
CSV bulk upload. Uploads that reject some rows answer 207 Multi-Status
with the full import report.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status

from api.schemas import ImportResponse, ResponseExamplePage, ResponseExampleView
from container import get_bulk_service_dependency, get_example_service_dependency
from core.models import (
    ImportReport,
    Page,
    ResponseExampleCreate,
    ResponseExampleUpdate,
    StyleExample,
    StyleExampleCreate,
    StyleExampleUpdate,
)
from security import get_current_principal
from services.bulk_service import BulkService
from services.example_service import ExampleService

router = APIRouter(
    prefix="/creators/{creator_id}",
    tags=["Examples"],
    dependencies=[Depends(get_current_principal)],
)


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _import_response(report: ImportReport) -> ImportResponse:
    report.raise_for_failures()
    return ImportResponse(
        message=f"Imported {report.imported_rows} of {report.total_rows} rows",
        report=report,
    )


# ============================================================================
# STYLE EXAMPLES
# ============================================================================


@router.get("/style-examples", response_model=Page[StyleExample])
async def list_style_examples(
    creator_id: int,
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None, description="Category name or 'all'"),
    skip: int = Query(0),
    limit: Optional[int] = Query(None),
    example_service: ExampleService = Depends(get_example_service_dependency),
) -> Page[StyleExample]:
    return await example_service.list_style_examples(
        creator_id, search=search, category=category, skip=skip, limit=limit
    )


@router.post(
    "/style-examples",
    response_model=StyleExample,
    status_code=status.HTTP_201_CREATED,
)
async def create_style_example(
    creator_id: int,
    payload: StyleExampleCreate,
    example_service: ExampleService = Depends(get_example_service_dependency),
) -> StyleExample:
    return await example_service.create_style_example(creator_id, payload)


@router.get("/style-examples/export", summary="Export style examples as CSV")
async def export_style_examples(
    creator_id: int,
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    bulk_service: BulkService = Depends(get_bulk_service_dependency),
) -> Response:
    content = await bulk_service.export_style_examples(
        creator_id, search=search, category=category
    )
    return _csv_response(content, f"creator-{creator_id}-style-examples.csv")


@router.post("/bulk-style-examples", response_model=ImportResponse)
async def import_style_examples(
    creator_id: int,
    file: UploadFile = File(...),
    bulk_service: BulkService = Depends(get_bulk_service_dependency),
) -> ImportResponse:
    """Upload ``fan_message,creator_response[,category]`` rows."""
    content = await file.read()
    report = await bulk_service.import_style_examples(creator_id, content)
    return _import_response(report)


@router.get("/style-examples/{example_id}", response_model=StyleExample)
async def get_style_example(
    creator_id: int,
    example_id: int,
    example_service: ExampleService = Depends(get_example_service_dependency),
) -> StyleExample:
    return await example_service.get_style_example(creator_id, example_id)


@router.patch("/style-examples/{example_id}", response_model=StyleExample)
async def update_style_example(
    creator_id: int,
    example_id: int,
    payload: StyleExampleUpdate,
    example_service: ExampleService = Depends(get_example_service_dependency),
) -> StyleExample:
    return await example_service.update_style_example(creator_id, example_id, payload)


@router.delete("/style-examples/{example_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_style_example(
    creator_id: int,
    example_id: int,
    example_service: ExampleService = Depends(get_example_service_dependency),
) -> Response:
    await example_service.delete_style_example(creator_id, example_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# RESPONSE EXAMPLES
# ============================================================================


@router.get("/response-examples", response_model=ResponseExamplePage)
async def list_response_examples(
    creator_id: int,
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None, description="Category name or 'all'"),
    skip: int = Query(0),
    limit: Optional[int] = Query(None),
    example_service: ExampleService = Depends(get_example_service_dependency),
) -> ResponseExamplePage:
    page = await example_service.list_response_examples(
        creator_id, search=search, category=category, skip=skip, limit=limit
    )
    return ResponseExamplePage(
        items=[ResponseExampleView.from_domain(example) for example in page.items],
        total=page.total,
        page=page.page,
        size=page.size,
        pages=page.pages,
    )


@router.post(
    "/response-examples",
    response_model=ResponseExampleView,
    status_code=status.HTTP_201_CREATED,
)
async def create_response_example(
    creator_id: int,
    payload: ResponseExampleCreate,
    example_service: ExampleService = Depends(get_example_service_dependency),
) -> ResponseExampleView:
    example = await example_service.create_response_example(creator_id, payload)
    return ResponseExampleView.from_domain(example)


@router.get("/response-examples/export", summary="Export response examples as CSV")
async def export_response_examples(
    creator_id: int,
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    bulk_service: BulkService = Depends(get_bulk_service_dependency),
) -> Response:
    content = await bulk_service.export_response_examples(
        creator_id, search=search, category=category
    )
    return _csv_response(content, f"creator-{creator_id}-response-examples.csv")


@router.post("/bulk-response-examples", response_model=ImportResponse)
async def import_response_examples(
    creator_id: int,
    file: UploadFile = File(...),
    bulk_service: BulkService = Depends(get_bulk_service_dependency),
) -> ImportResponse:
    """Upload ``fan_message,category,response_text,ranking`` rows, one per candidate."""
    content = await file.read()
    report = await bulk_service.import_response_examples(creator_id, content)
    return _import_response(report)


@router.get("/response-examples/{example_id}", response_model=ResponseExampleView)
async def get_response_example(
    creator_id: int,
    example_id: int,
    example_service: ExampleService = Depends(get_example_service_dependency),
) -> ResponseExampleView:
    example = await example_service.get_response_example(creator_id, example_id)
    return ResponseExampleView.from_domain(example)


@router.patch("/response-examples/{example_id}", response_model=ResponseExampleView)
async def update_response_example(
    creator_id: int,
    example_id: int,
    payload: ResponseExampleUpdate,
    example_service: ExampleService = Depends(get_example_service_dependency),
) -> ResponseExampleView:
    example = await example_service.update_response_example(creator_id, example_id, payload)
    return ResponseExampleView.from_domain(example)


@router.delete("/response-examples/{example_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_response_example(
    creator_id: int,
    example_id: int,
    example_service: ExampleService = Depends(get_example_service_dependency),
) -> Response:
    await example_service.delete_response_example(creator_id, example_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
