from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from typing import List, Optional
import logging
import os

from config import API_HOST, API_PORT, SEED_FILE
from typeahead.catalog import CatalogItem, load_catalog, search_catalog, to_search_result
from typeahead.search_models import ResultPage, SearchResult

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def resolve_seed_file(seed_file: str) -> str:
    if os.path.isabs(seed_file):
        return seed_file
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), seed_file)


def create_app(seed_file: Optional[str] = None) -> FastAPI:
    """
    Development search endpoint serving the widget's network contract
    from an in-memory seed catalogue.
    """
    app = FastAPI(
        title="Typeahead Search API",
        description="Search the seed catalogue as the widget types",
        version=API_VERSION
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    path = resolve_seed_file(seed_file or SEED_FILE)
    if os.path.exists(path):
        app.state.catalog = load_catalog(path)
    else:
        logger.warning(f"Seed file {path} does not exist, serving an empty catalogue")
        app.state.catalog = []

    @app.get("/", tags=["Health"])
    async def root(request: Request):
        """Health check endpoint"""
        catalog: List[CatalogItem] = request.app.state.catalog
        return {
            "message": "Typeahead Search API",
            "version": API_VERSION,
            "status": "healthy" if catalog else "empty_catalogue",
            "items": len(catalog)
        }

    @app.get("/api/search", response_model=ResultPage, tags=["Search"])
    async def search(
        request: Request,
        query: str = Query(..., min_length=1, description="Search query"),
        limit: int = Query(10, ge=1, le=50, description="Number of results per page"),
        page: int = Query(1, ge=1, description="Page number"),
    ):
        """
        Search catalogue titles and roles, title matches first.
        """
        try:
            hits, total = search_catalog(
                request.app.state.catalog, query, limit=limit, page=page)
            return ResultPage(
                results=[to_search_result(item) for item in hits],
                total=total,
                page=page
            )
        except Exception as e:
            logger.error(f"Search error: {str(e)}")
            raise HTTPException(status_code=500, detail=f"Search error: {str(e)}")

    @app.get("/api/items/{item_id}", response_model=SearchResult, tags=["Items"])
    async def get_item(request: Request, item_id: int):
        """
        Retrieve a single catalogue item by id.
        """
        for item in request.app.state.catalog:
            if item.id == item_id:
                return to_search_result(item)
        raise HTTPException(status_code=404, detail="Item not found")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )
    uvicorn.run(app, host=API_HOST, port=API_PORT)
