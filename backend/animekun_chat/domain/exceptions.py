"""Domain-specific exceptions — framework-independent."""


class ChatProviderError(Exception):
    """Raised when a chat provider returns an error.

    Provider-agnostic — works for OpenRouter, Groq, OpenAI, etc.
    """

    def __init__(self, provider: str, status_code: int, message: str):
        self.provider = provider
        self.status_code = status_code
        self.message = message
        super().__init__(f"[{provider}] {status_code}: {message}")


class BackendAPIError(Exception):
    """Raised when the admin backend answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str, method: str = "GET", endpoint: str = ""):
        self.status_code = status_code
        self.body = body
        self.method = method
        self.endpoint = endpoint
        super().__init__(f"API Error: {status_code} - {body}")


class ToolNotFoundError(Exception):
    """Raised when the model asks for a tool that is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tool '{name}' is not registered")


class ToolValidationError(Exception):
    """Raised when tool arguments do not match the tool's input schema."""

    def __init__(self, name: str, errors: list[str]):
        self.name = name
        self.errors = errors
        super().__init__(f"Invalid arguments for tool '{name}': {'; '.join(errors)}")


class DuplicateEntityError(Exception):
    """Raised when attempting to create a duplicate entity."""

    def __init__(self, entity_type: str, field: str, value: str, existing_id: int | str | None = None):
        self.entity_type = entity_type
        self.field = field
        self.value = value
        self.existing_id = existing_id
        message = f"{entity_type} with {field}='{value}' already exists"
        if existing_id is not None:
            message += f" (ID {existing_id})"
        super().__init__(message)


class WebSearchError(Exception):
    """Raised when the third-party web search provider fails."""
