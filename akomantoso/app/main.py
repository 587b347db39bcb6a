from fastapi import FastAPI

from akomantoso.app.api.documents import router as documents_router

app = FastAPI(
    title="akomantoso-doc",
    description="Akoma Ntoso document assembly and signature ledger",
    version="0.1.0",
)

app.include_router(documents_router, prefix="/documents")
