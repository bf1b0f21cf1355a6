import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from podtekst_analytics.models.conversation import PLATFORMS, ParsedConversation
from podtekst_analytics.models.serialization import conversation_from_dict

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE_FIELDS = ('sender', 'content', 'timestamp')


class ConversationLoader:
    """Reads normalized conversation JSON produced by the upstream export parsers."""

    def __init__(self, input_dir: str):
        self.base_path = Path(input_dir)
        logger.info(f"ConversationLoader initialized for path: {self.base_path}")

    def find_input_file(self) -> Optional[Path]:
        if not self.base_path.is_dir():
            logger.error(f"Input directory {self.base_path} does not exist")
            return None
        candidates = sorted(p for p in self.base_path.iterdir() if p.is_file() and p.suffix.lower() == '.json')
        if not candidates:
            logger.error(f"No .json conversation found in {self.base_path}")
            return None
        if len(candidates) > 1:
            logger.warning(f"{len(candidates)} JSON files in {self.base_path}, using {candidates[0].name}")
        return candidates[0]

    def _load_json_file(self, file_path: Path) -> Any:
        if file_path.exists():
            try:
                with open(file_path, 'r', encoding='utf-8') as f:
                    content = json.load(f)
                    logger.debug(f"Successfully loaded {file_path.name}")
                    return content
            except json.JSONDecodeError as e:
                logger.warning(f"Could not decode JSON from {file_path.name}: {e}")
            except OSError as e:
                logger.warning(f"Error loading {file_path.name}: {e}")
        else:
            logger.warning(f"{file_path.name} not found at {file_path}")
        return None

    def load(self, file_path: Optional[Path] = None) -> Optional[ParsedConversation]:
        """Load and validate one conversation. None when the file is missing or unreadable."""
        file_path = file_path or self.find_input_file()
        if file_path is None:
            return None
        data = self._load_json_file(file_path)
        if data is None:
            return None
        return parse_conversation(data)


def _validate_messages(messages: List[Any], names: set) -> None:
    for i, message in enumerate(messages):
        if not isinstance(message, dict):
            raise ValueError(f"Message {i} is not a dictionary")
        for field_name in REQUIRED_MESSAGE_FIELDS:
            if field_name not in message:
                raise ValueError(f"Message {i} missing '{field_name}' field")
        if message['sender'] not in names:
            raise ValueError(f"Message {i} sender '{message['sender']}' is not a participant")
        if not isinstance(message['timestamp'], (int, float)) or isinstance(message['timestamp'], bool):
            raise ValueError(f"Message {i} has invalid timestamp {message['timestamp']!r}")
        for j, reaction in enumerate(message.get('reactions') or []):
            if not isinstance(reaction, dict) or 'emoji' not in reaction or 'actor' not in reaction:
                raise ValueError(f"Message {i} reaction {j} needs 'emoji' and 'actor'")


def validate_conversation_structure(data: Dict[str, Any]) -> None:
    """Raise ValueError describing the first structural problem found."""
    if not isinstance(data, dict):
        raise ValueError("Conversation is not a dictionary")

    platform = data.get('platform')
    if platform not in PLATFORMS:
        raise ValueError(f"Unknown platform {platform!r}, expected one of {', '.join(PLATFORMS)}")

    participants = data.get('participants')
    if not isinstance(participants, list) or not participants:
        raise ValueError("Conversation has invalid or missing 'participants' field")
    names = set()
    for i, participant in enumerate(participants):
        if not isinstance(participant, dict) or not isinstance(participant.get('name'), str):
            raise ValueError(f"Participant {i} missing 'name' field")
        if participant['name'] in names:
            raise ValueError(f"Participant {i} name '{participant['name']}' is duplicated")
        names.add(participant['name'])

    messages = data.get('messages')
    if not isinstance(messages, list):
        raise ValueError("Conversation has invalid or missing 'messages' field")
    _validate_messages(messages, names)

    logger.info(f"Conversation structure validation passed: {len(participants)} participants, "
                f"{len(messages)} messages")


def parse_conversation(data: Dict[str, Any]) -> ParsedConversation:
    validate_conversation_structure(data)
    try:
        return conversation_from_dict(data)
    except (KeyError, TypeError) as e:
        raise ValueError(f"Conversation could not be parsed: {e}")
