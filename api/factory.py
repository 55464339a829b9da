from api.base_client import BaseAIClient
from config.config import Config, ModelType
from models.errors import ConfigError
from utils.logger import get_logger

logger = get_logger(__name__)


def initialize_client(config: Config) -> BaseAIClient:
    """
    Initialize the oracle backend selected by MODEL_TYPE.

    Raises:
        ConfigError: If the model type is unsupported or its API key is missing
    """
    model_type = config.MODEL_TYPE

    if model_type == ModelType.OPENAI.value:
        from api.openai_client import OpenAIClient

        if not config.OPENAI_API_KEY:
            raise ConfigError("OPENAI_API_KEY not found in environment variables")
        client = OpenAIClient(
            api_key=config.OPENAI_API_KEY,
            model_name=config.DEFAULT_MODEL,
            timeout_s=config.ORACLE_TIMEOUT_S,
        )

    elif model_type == ModelType.GEMINI.value:
        from api.google_gemini_client import GeminiClient

        if not config.GOOGLE_GEMINI_API_KEY:
            raise ConfigError("GOOGLE_GEMINI_API_KEY not found in environment variables")
        client = GeminiClient(
            api_key=config.GOOGLE_GEMINI_API_KEY,
            model_name=config.DEFAULT_MODEL,
            timeout_s=config.ORACLE_TIMEOUT_S,
        )

    else:
        raise ConfigError(f"Unsupported MODEL_TYPE: {model_type}. Must be 'openai' or 'gemini'")

    logger.info(f"Initialized {config.get_model_info()} oracle client")
    return client
