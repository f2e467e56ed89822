from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "rrchat Backend"
    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 8000

    # OpenAI / Azure OpenAI
    openai_api_key: str | None = None
    use_azure_openai: bool = False
    azure_openai_endpoint: str | None = None
    azure_openai_api_version: str = "2024-06-01"
    chat_deployment: str = "gpt-4o-mini"  # Used when no generation config applies (query planning)
    embedding_deployment: str = "text-embedding-ada-002"
    llm_timeout_seconds: float = 60.0

    # ChromaDB settings
    chromadb_persist_directory: str | None = None  # Auto-detected if None
    documents_collection: str = "documents"
    images_collection: str = "images"

    # Image retrieval (enabled only when both the vision endpoint and a token are configured)
    vision_endpoint: str | None = None
    vision_api_key: str | None = None
    vision_api_version: str = "2024-02-01"
    vision_model_version: str = "2023-04-15"
    image_sas_token: str | None = None

    # Citation links point at the blob container holding the source documents
    storage_account: str | None = None
    storage_container: str = "content"

    # Feature flags: a static variants file wins over the Split evaluator
    variants_file: str | None = None
    split_evaluator_url: str | None = None
    split_evaluator_auth_key: str | None = None
    split_sdk_key: str | None = None  # Enables Split event tracking
    split_events_url: str = "https://events.split.io/api/events"
    split_environment: str = "Prod"
    http_timeout_seconds: float = 10.0

    class Config:
        env_file = ".env"
        extra = "ignore"  # Ignore extra environment variables that aren't in the Settings class

    @property
    def citation_base_url(self) -> str:
        if not self.storage_account:
            return ""
        return f"https://{self.storage_account}.blob.core.windows.net/{self.storage_container}"


settings = Settings()
