
from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    data_dir: str = "./data"

    # "auto" | "local" | "openai" | "none"
    embedding_provider: str = "auto"
    embedding_model: str = "sentence-transformers/all-MiniLM-L6-v2"

    openai_api_key: str | None = None
    openai_embedding_model: str = "text-embedding-3-small"
    embedding_base_url: str | None = None
    embedding_api_key: str | None = None
    embedding_dimensions: int = 1536

    chunk_max_lines: int = 60
    chunk_overlap_lines: int = 8
    chunk_min_gap: int = 5

    rrf_k: int = 60
    search_limit: int = 10

    # Source filtering
    max_file_size: int = 500 * 1024

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
