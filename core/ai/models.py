"""Model identifiers used across the generation pipeline."""

# Primary backend (Gemini)
GEMINI_FLASH = "gemini-2.0-flash"
GEMINI_FLASH_EXP = "gemini-2.0-flash-exp"
GEMINI_FLASH_LITE = "gemini-2.0-flash-lite-preview-02-05"
GEMINI_FLASH_IMAGE = "gemini-2.5-flash-image"
GEMINI_PRO = "gemini-1.5-pro"

# Fallback backend (Azure OpenAI deployment name)
GPT_4O = "gpt-4o"

DEFAULT_TEXT_MODEL = GEMINI_FLASH
DEFAULT_LITE_MODEL = GEMINI_FLASH_LITE
DEFAULT_IMAGE_MODEL = GEMINI_FLASH_IMAGE
