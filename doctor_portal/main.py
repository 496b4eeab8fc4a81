from fastapi import FastAPI

from doctor_portal.api.deps import get_registry
from doctor_portal.api.routes.router import api_router
from doctor_portal.core.firebase import init_firebase

app = FastAPI(title="HealthVerse Doctor Portal")


@app.on_event("startup")
def startup():
    """Initialize Firebase Admin (reads credentials path from settings)."""
    init_firebase()


@app.on_event("shutdown")
def shutdown():
    # Stop every access session countdown before the process goes away
    get_registry().dispose_all()


@app.get("/")
async def root():
    return {"message": "HealthVerse Doctor Portal backend is running"}


@app.get("/health")
async def health_check():
    return {"status": "ok"}


app.include_router(api_router)
