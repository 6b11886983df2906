from fastapi import FastAPI
from .routes.priority import router as priority_router

app = FastAPI(title="DealerDesk Priority Engine",
              description="Order risk scoring, next-best-action and daily priority list",
    version="0.1.0",
    docs_url="/docs",          # Swagger UI
    redoc_url="/redoc",        # ReDoc
    openapi_url="/openapi.json")

app.include_router(priority_router)

@app.get("/health")
def health():
    return {"ok": True}
