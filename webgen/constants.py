"""Constants and default values for WebGen."""

# Model endpoint defaults
DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-4o"

# Agent loop defaults
DEFAULT_MAX_ITERATIONS = 30
DEFAULT_THINKING_BUDGET = 10000  # tokens
DEFAULT_TIMEOUT = 300  # seconds

# Event-stream framing
SSE_DATA_PREFIX = "data:"
SSE_DONE_SENTINEL = "[DONE]"

# Patch log preview length (characters of the search text)
PATCH_PREVIEW_CHARS = 60

# Console log buffer size (entries)
MAX_CONSOLE_ENTRIES = 200

# Web search collaborator
DEFAULT_TAVILY_API_URL = "https://api.tavily.com"
JINA_READER_URL = "https://r.jina.ai/"
DEFAULT_SEARCH_RESULTS = 5

# Named endpoint presets
MODEL_PRESETS = {
    "openai": {
        "api_url": "https://api.openai.com/v1/chat/completions",
        "model": "gpt-4o",
    },
    "openai-3.5": {
        "api_url": "https://api.openai.com/v1/chat/completions",
        "model": "gpt-3.5-turbo",
    },
    "deepseek": {
        "api_url": "https://api.deepseek.com/v1/chat/completions",
        "model": "deepseek-chat",
    },
    "ollama": {
        "api_url": "http://localhost:11434/v1/chat/completions",
        "model": "codellama",
    },
}
