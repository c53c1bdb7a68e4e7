from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import CORS_ORIGINS
from app.database import close_client
from app.middleware import add_request_id_and_process_time
from app.routes.user_route import user_router
from app.routes.product_route import product_router
from app.routes.booking_route import booking_router
from app.routes.report_route import report_router
from app.routes.admin_route import admin_router


app = FastAPI(
    title="RentLens API",
    version="1.0.0",
    description="API for RentLens, a camera gear rental marketplace: browse DSLR, mirrorless, drone and lens listings, book them for a date range, pay, and let owners manage their rentals.",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(add_request_id_and_process_time)


@app.on_event("shutdown")
def shutdown():
    close_client()


@app.get("/", status_code=200)
async def home():
    return {"message": "Welcome to RentLens REST API Project"}


app.include_router(user_router, prefix="/api", tags=["Users"])
app.include_router(product_router, prefix="/api", tags=["Products"])
app.include_router(booking_router, prefix="/api", tags=["Bookings"])
app.include_router(report_router, prefix="/api", tags=["Reports"])
app.include_router(admin_router, prefix="/api", tags=["Admin"])
