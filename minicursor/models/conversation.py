"""Conversation state: the append-only message log sent to the model."""

from collections.abc import Sequence

from minicursor.exceptions import ConversationProtocolError
from minicursor.models.llm import AssistantTurn
from minicursor.models.messages import Message, ToolResult
from minicursor.utils.logging import get_logger

logger = get_logger(__name__)


class ConversationState:
    """Ordered message log plus the set of unanswered tool calls.

    Messages are only ever appended. An assistant turn that requests tools opens
    a set of pending call ids; every one of them must be answered with a tool
    result before the next assistant turn can be appended.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._pending: dict[str, str] = {}

    @classmethod
    def start(cls, system_prompt: str, task: str) -> "ConversationState":
        """Create a conversation seeded with the system prompt and the user's task."""
        state = cls()
        state._messages.append(Message.system(system_prompt))
        state._messages.append(Message.user(task))
        return state

    @property
    def messages(self) -> Sequence[Message]:
        return tuple(self._messages)

    @property
    def pending_call_ids(self) -> frozenset[str]:
        return frozenset(self._pending)

    @property
    def ready_for_model(self) -> bool:
        return not self._pending

    def __len__(self) -> int:
        return len(self._messages)

    def append_assistant(self, turn: AssistantTurn) -> Message:
        """Append an assistant turn and open its tool calls."""
        if self._pending:
            raise ConversationProtocolError(
                f"Cannot append assistant turn: {len(self._pending)} tool call(s) still unanswered"
            )

        ids = [call.id for call in turn.tool_calls]
        if len(set(ids)) != len(ids):
            raise ConversationProtocolError(f"Duplicate tool call ids in one assistant turn: {ids}")

        message = Message.assistant(turn.content, turn.tool_calls)
        self._messages.append(message)
        self._pending = {call.id: call.name for call in turn.tool_calls}
        return message

    def append_tool_result(self, result: ToolResult) -> Message:
        """Append the answer to one pending tool call."""
        if result.tool_call_id not in self._pending:
            raise ConversationProtocolError(f"No pending tool call with id '{result.tool_call_id}'")

        message = Message.tool_result(result)
        self._messages.append(message)
        name = self._pending.pop(result.tool_call_id)
        logger.debug(f"Answered tool call {result.tool_call_id} ({name}), {len(self._pending)} pending")
        return message
