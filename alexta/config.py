"""
Centralized configuration
"""
import os
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from dotenv import load_dotenv

# Setup debug logger for configuration
_config_logger = logging.getLogger('config')

# Check for DEBUG_MODE early (before .env is loaded, check environment)
_debug_mode = os.getenv('DEBUG_MODE', 'false').lower() == 'true'
if _debug_mode:
    logging.basicConfig(level=logging.DEBUG, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("DEBUG_MODE enabled - verbose logging active")

# Load .env from the current working directory if present
_env_file = Path.cwd() / '.env'
_dotenv_result = load_dotenv(_env_file)
if _debug_mode:
    _config_logger.debug(f"Loaded .env from {_env_file.absolute()}: {_dotenv_result}")

# Server configuration
HOST = os.getenv('HOST', '127.0.0.1')
PORT = int(os.getenv('PORT', '5000'))

# Supported target languages, used to populate the language selector.
# Adding a language only means adding a row here.
SUPPORTED_LANGUAGES: List[Dict[str, str]] = [
    {"code": "en", "name": "English"},
    {"code": "pt", "name": "Portuguese"},
    {"code": "es", "name": "Spanish"},
    {"code": "ru", "name": "Russian"},
    {"code": "tr", "name": "Turkish"},
    {"code": "fr", "name": "French"},
]

DEFAULT_TARGET_LANGUAGE = os.getenv('DEFAULT_TARGET_LANGUAGE', 'en')

# Sentinel shown instead of calling the translator when source == target
SAME_LANGUAGE_MESSAGE = "Text is already in the selected language"

# Summarization gate
SUMMARY_MIN_LENGTH = int(os.getenv('SUMMARY_MIN_LENGTH', '150'))
SUMMARY_REQUIRED_LANGUAGE = os.getenv('SUMMARY_REQUIRED_LANGUAGE', 'en')

# Summarizer style preferences (passed through to the provider)
SUMMARY_TYPE = os.getenv('SUMMARY_TYPE', 'key-points')
SUMMARY_FORMAT = os.getenv('SUMMARY_FORMAT', 'text')
SUMMARY_LENGTH = os.getenv('SUMMARY_LENGTH', 'medium')

# Language detection
DETECTION_MIN_CONFIDENCE = float(os.getenv('DETECTION_MIN_CONFIDENCE', '0.5'))

# Capability providers: 'ollama' or 'openai'
TRANSLATOR_PROVIDER = os.getenv('TRANSLATOR_PROVIDER', 'ollama')
SUMMARIZER_PROVIDER = os.getenv('SUMMARIZER_PROVIDER', 'ollama')

# Ollama configuration
OLLAMA_API_ENDPOINT = os.getenv('OLLAMA_API_ENDPOINT', 'http://localhost:11434')
TRANSLATOR_MODEL = os.getenv('TRANSLATOR_MODEL', 'qwen3:14b')
SUMMARIZER_MODEL = os.getenv('SUMMARIZER_MODEL', 'qwen3:14b')

# OpenAI-compatible configuration (OpenAI, OpenRouter, LM Studio, llama.cpp...)
OPENAI_API_ENDPOINT = os.getenv('OPENAI_API_ENDPOINT', 'https://api.openai.com/v1/chat/completions')
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY', '')
OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')

REQUEST_TIMEOUT = int(os.getenv('REQUEST_TIMEOUT', '300'))

# When a model is missing locally, allow the provider to pull it
AUTO_DOWNLOAD_MODELS = os.getenv('AUTO_DOWNLOAD_MODELS', 'true').lower() == 'true'

# When false, an 'unavailable' answer is remembered until an explicit reset.
# When true, every lookup after an 'unavailable' answer negotiates again.
RETRY_UNAVAILABLE = os.getenv('RETRY_UNAVAILABLE', 'false').lower() == 'true'

# Output tags for translation prompts
TRANSLATE_TAG_IN = "<TRANSLATION>"
TRANSLATE_TAG_OUT = "</TRANSLATION>"
INPUT_TAG_IN = "<SOURCE_TEXT>"
INPUT_TAG_OUT = "</SOURCE_TEXT>"

# Debug mode (reload after .env is loaded)
DEBUG_MODE = os.getenv('DEBUG_MODE', 'false').lower() == 'true'

if DEBUG_MODE or _debug_mode:
    _config_logger.setLevel(logging.DEBUG)
    _config_logger.debug("=" * 60)
    _config_logger.debug("LOADED CONFIGURATION VALUES:")
    _config_logger.debug(f"   HOST: {HOST}")
    _config_logger.debug(f"   PORT: {PORT}")
    _config_logger.debug(f"   DEFAULT_TARGET_LANGUAGE: {DEFAULT_TARGET_LANGUAGE}")
    _config_logger.debug(f"   TRANSLATOR_PROVIDER: {TRANSLATOR_PROVIDER}")
    _config_logger.debug(f"   SUMMARIZER_PROVIDER: {SUMMARIZER_PROVIDER}")
    _config_logger.debug(f"   OLLAMA_API_ENDPOINT: {OLLAMA_API_ENDPOINT}")
    _config_logger.debug(f"   TRANSLATOR_MODEL: {TRANSLATOR_MODEL}")
    _config_logger.debug(f"   SUMMARIZER_MODEL: {SUMMARIZER_MODEL}")
    _config_logger.debug(f"   OPENAI_API_KEY: {'***' + OPENAI_API_KEY[-4:] if OPENAI_API_KEY else '(not set)'}")
    _config_logger.debug(f"   AUTO_DOWNLOAD_MODELS: {AUTO_DOWNLOAD_MODELS}")
    _config_logger.debug(f"   RETRY_UNAVAILABLE: {RETRY_UNAVAILABLE}")
    _config_logger.debug("=" * 60)


def is_supported_language(code: Optional[str]) -> bool:
    """Check whether a language code appears in SUPPORTED_LANGUAGES"""
    return any(lang["code"] == code for lang in SUPPORTED_LANGUAGES)


def get_language_name(code: str) -> str:
    """Display name for a language code, falling back to the code itself"""
    for lang in SUPPORTED_LANGUAGES:
        if lang["code"] == code:
            return lang["name"]
    return code


@dataclass
class Settings:
    """Unified configuration for both CLI and web interfaces"""

    default_target_language: str = DEFAULT_TARGET_LANGUAGE

    # Capability providers
    translator_provider: str = TRANSLATOR_PROVIDER
    summarizer_provider: str = SUMMARIZER_PROVIDER
    ollama_api_endpoint: str = OLLAMA_API_ENDPOINT
    translator_model: str = TRANSLATOR_MODEL
    summarizer_model: str = SUMMARIZER_MODEL
    openai_api_endpoint: str = OPENAI_API_ENDPOINT
    openai_api_key: str = OPENAI_API_KEY
    openai_model: str = OPENAI_MODEL
    timeout: int = REQUEST_TIMEOUT
    auto_download_models: bool = AUTO_DOWNLOAD_MODELS
    detection_min_confidence: float = DETECTION_MIN_CONFIDENCE

    # Registry policy
    retry_unavailable: bool = RETRY_UNAVAILABLE

    # Summarizer preferences
    summary_options: Dict[str, str] = field(default_factory=lambda: {
        "type": SUMMARY_TYPE,
        "format": SUMMARY_FORMAT,
        "length": SUMMARY_LENGTH,
    })

    # Interface-specific
    interface_type: str = "cli"  # or "web"
    enable_colors: bool = True

    @classmethod
    def from_cli_args(cls, args) -> 'Settings':
        """Create settings from CLI arguments"""
        model = getattr(args, 'model', None)
        return cls(
            default_target_language=args.target_lang,
            translator_provider=args.provider,
            summarizer_provider=args.provider,
            ollama_api_endpoint=args.api_endpoint,
            translator_model=model or TRANSLATOR_MODEL,
            summarizer_model=model or SUMMARIZER_MODEL,
            openai_model=(model or OPENAI_MODEL) if args.provider == "openai" else OPENAI_MODEL,
            openai_api_key=getattr(args, 'openai_api_key', OPENAI_API_KEY),
            auto_download_models=not getattr(args, 'no_download', False),
            retry_unavailable=getattr(args, 'retry_unavailable', RETRY_UNAVAILABLE),
            interface_type="cli",
            enable_colors=not args.no_color,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization (API key masked)"""
        return {
            'default_target_language': self.default_target_language,
            'translator_provider': self.translator_provider,
            'summarizer_provider': self.summarizer_provider,
            'ollama_api_endpoint': self.ollama_api_endpoint,
            'translator_model': self.translator_model,
            'summarizer_model': self.summarizer_model,
            'openai_api_endpoint': self.openai_api_endpoint,
            'openai_api_key': '***' + self.openai_api_key[-4:] if self.openai_api_key else '',
            'openai_model': self.openai_model,
            'timeout': self.timeout,
            'auto_download_models': self.auto_download_models,
            'retry_unavailable': self.retry_unavailable,
            'summary_options': dict(self.summary_options),
        }
