"""
Environment-driven settings for the quiz pipeline.
Values are read once at import; every module pulls its config from here.
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


# Model providers
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
QUIZ_MODEL = os.getenv("QUIZ_MODEL", "gpt-4o-mini")

# Embeddings (OpenAI text-embedding-3-large)
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-3-large")
EMBEDDING_DIMENSION = _int_env("EMBEDDING_DIMENSION", 3072)

# Pinecone
PINECONE_API_KEY = os.getenv("PINECONE_API_KEY")
PINECONE_INDEX_NAME = os.getenv("PINECONE_INDEX_NAME", "studiahub-chunks")

# Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
QUIZ_TABLE = os.getenv("QUIZ_TABLE", "quizzes")
QUIZ_QUESTIONS_TABLE = os.getenv("QUIZ_QUESTIONS_TABLE", "quiz_questions")
FILES_TABLE = os.getenv("FILES_TABLE", "files")

# SQS
AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
QUIZ_QUEUE_URL = os.getenv("QUIZ_QUEUE_URL")
SQS_ENDPOINT_URL = os.getenv("SQS_ENDPOINT_URL")  # ElasticMQ for local runs

# Redis (rate limiting)
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")
QUIZ_RATE_LIMIT_MAX = _int_env("QUIZ_RATE_LIMIT_MAX", 10)
QUIZ_RATE_LIMIT_WINDOW = _int_env("QUIZ_RATE_LIMIT_WINDOW", 3600)

# Worker behaviour
# "skip": a worker whose output fails validation twice contributes nothing.
# "fail_quiz": the quiz is moved to error instead.
QUIZ_PARSE_FAILURE_POLICY = os.getenv("QUIZ_PARSE_FAILURE_POLICY", "skip")
QUIZ_STALL_SECONDS = _int_env("QUIZ_STALL_SECONDS", 600)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
