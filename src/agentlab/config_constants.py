from enum import Enum
from langchain_postgres.vectorstores import DistanceStrategy


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

class OPENROUTER_LLM_MODELS(str, Enum):
    GPT_4O = "openai/gpt-4o"
    GPT_4O_MINI = "openai/gpt-4o-mini"

    ANTHROPIC_HAIKU_45 = "anthropic/claude-haiku-4.5"

class OPENAI_LLM_MODELS(str, Enum):
    GPT_4O = "gpt-4o"
    GPT_4O_MINI = "gpt-4o-mini"

class OPENROUTER_EMBEDDING_MODELS(str, Enum):
    OPENAI_TEXT_EMBEDDING_MODEL_3_SMALL = "openai/text-embedding-3-small"
    OPENAI_TEXT_EMBEDDING_MODEL_3_LARGE = "openai/text-embedding-3-large"

class OPENAI_EMBEDDING_MODELS(str, Enum):
    TEXT_EMBEDDING_MODEL_3_SMALL = "text-embedding-3-small"
    TEXT_EMBEDDING_MODEL_3_LARGE = "text-embedding-3-large"

OPEN_ROUTER_API_URL = "https://openrouter.ai/api/v1"
OPENAI_API_URL = "https://api.openai.com/v1"

# -------------------------
# Vector Store Constants
# -------------------------

# pgvector distance operators, keyed by strategy
PGVECTOR_DISTANCE_OPERATORS = {
    DistanceStrategy.COSINE: "<=>",
    DistanceStrategy.EUCLIDEAN: "<->",
    DistanceStrategy.MAX_INNER_PRODUCT: "<#>",
}

# Separator placed between retrieved chunks when they are joined into one prompt context
CHUNK_SEPARATOR = "\n\n---\n\n"
