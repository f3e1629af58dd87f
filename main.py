from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import sys

from routes.quiz_routes import router as quiz_router
from utils import settings
from utils.exceptions import StudiaError

# Configure logging
logger = logging.getLogger(__name__)
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler('app.log')
    ]
)

# FastAPI App
app = FastAPI(title="StudiaHub Quiz API")


# Add the custom exception handlers
@app.exception_handler(StudiaError)
async def studia_exception_handler(request: Request, exc: StudiaError):
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
    headers = {}
    retry_after = exc.context.get("retry_after_seconds")
    if retry_after is not None:
        headers["Retry-After"] = str(retry_after)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error_code,
            "message": exc.message,
            "context": jsonable_encoder(exc.context),
        },
        headers=headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    detail = jsonable_encoder(exc.errors(), custom_encoder={Exception: str})
    messages = [err.get("msg", "") for err in detail]
    return JSONResponse(
        status_code=400,
        content={
            "error": "INVALID_REQUEST",
            "message": "; ".join(m for m in messages if m) or "Invalid request",
            "context": {"errors": detail},
        },
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quiz_router)


@app.get("/")
async def root():
    return {"greeting": "Hello!", "message": "Welcome to the StudiaHub quiz API!"}


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "queueConfigured": bool(settings.QUIZ_QUEUE_URL),
        "model": settings.QUIZ_MODEL,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
