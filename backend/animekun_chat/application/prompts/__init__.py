from .system_prompt import SYSTEM_PROMPT, build_image_message

__all__ = ["SYSTEM_PROMPT", "build_image_message"]
