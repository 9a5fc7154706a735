from llmwire.config.loader import (
    BedrockSettings,
    Config,
    LoggingSettings,
    OllamaSettings,
    get_config,
)

__all__ = ["BedrockSettings", "Config", "LoggingSettings", "OllamaSettings", "get_config"]
