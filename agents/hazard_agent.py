from langchain_openai import ChatOpenAI
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from pathlib import Path
from typing import Optional
import json

from tools.errors import ProviderError
from tools.hazard_schema import HIGH_RISK_MIN, MEDIUM_RISK_MIN
from tools.logging import get_logger

logger = get_logger(__name__)

CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "hazard_agent.json"
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


def load_agent_config(path: Path = CONFIG_PATH) -> dict:
    """
    Load model and prompt settings for the hazard agent.

    :param path: Path to the agent config json.
    :type path: Path

    :return: Config dictionary with ``hazard_model`` and ``prompt`` sections.
    :rtype: dict
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


#prompts are plain text, no html escaping of the transcript
_prompt_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    undefined=StrictUndefined,
    autoescape=False,
    keep_trailing_newline=False,
)


def build_prompt(transcript: str, template_name: str = "hazard_extraction_v1.j2") -> str:
    """
    Render the hazard extraction prompt for a transcript.

    The transcript is embedded verbatim. The risk band thresholds come from
    the same constants the validator checks against.

    :param transcript: Worker transcript.
    :type transcript: str
    :param template_name: Prompt template file under ``agents/templates``.
    :type template_name: str

    :return: Prompt text ready to send to the model.
    :rtype: str
    """
    template = _prompt_env.get_template(template_name)
    return template.render(
        transcript=transcript,
        high_min=HIGH_RISK_MIN,
        medium_min=MEDIUM_RISK_MIN,
    )


def build_chat_model(api_key: str, base_url: Optional[str] = None, config: Optional[dict] = None) -> ChatOpenAI:
    """Build the chat model from the agent config. If you want a different provider import it from langchain."""
    config = config or load_agent_config()
    model_config = config["hazard_model"]
    return ChatOpenAI(
        model=model_config["model"],
        temperature=model_config["temperature"],
        top_p=model_config["top_p"],
        api_key=api_key,
        base_url=base_url,
        max_retries=0,
    )


def _message_text(content) -> str:
    if isinstance(content, str):
        return content
    # Some providers return a list of content blocks
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class HazardExtractionClient:
    """Sends a transcript to the chat model and returns its raw answer."""

    def __init__(self, model: BaseChatModel, template_name: str = "hazard_extraction_v1.j2") -> None:
        self.model = model
        self.template_name = template_name

    @classmethod
    def from_config(cls, api_key: str, base_url: Optional[str] = None, config_path: Path = CONFIG_PATH) -> "HazardExtractionClient":
        config = load_agent_config(config_path)
        return cls(
            model=build_chat_model(api_key, base_url, config),
            template_name=config["prompt"]["template"],
        )

    async def extract(self, transcript: str) -> str:
        """
        Ask the model for a hazard report.

        No parsing happens here; the caller validates the text.

        :param transcript: Worker transcript, already length-checked.
        :type transcript: str

        :return: Model response text with surrounding whitespace trimmed.
        :rtype: str
        :raises ProviderError: If the model call fails for any reason.
        """
        prompt = build_prompt(transcript, self.template_name)

        try:
            result = await self.model.ainvoke([HumanMessage(content=prompt)])
        except Exception as e:
            logger.error(f"Model API error: {e}", exc_info=True)
            raise ProviderError(str(e), {"error_type": type(e).__name__}) from e

        return _message_text(result.content).strip()
