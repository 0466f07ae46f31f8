"""Agent loop: invoke the model, dispatch its tool calls, repeat."""

from dataclasses import dataclass, field
from enum import Enum

from minicursor.clients.base import ModelClient
from minicursor.exceptions import EmptyResponse
from minicursor.models.conversation import ConversationState
from minicursor.models.llm import AssistantTurn, LLMUsage
from minicursor.models.messages import Message
from minicursor.prompts import get_system_prompt
from minicursor.services.dispatcher import ToolDispatcher
from minicursor.tools.registry import ToolsRegistry
from minicursor.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_ITERATIONS = 30


class AgentStatus(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    DISPATCHING = "dispatching"
    TERMINATED_FINAL = "terminated_final"
    TERMINATED_BY_LIMIT = "terminated_by_limit"
    TERMINATED_ERROR = "terminated_error"

    @property
    def is_terminal(self) -> bool:
        return self in (
            AgentStatus.TERMINATED_FINAL,
            AgentStatus.TERMINATED_BY_LIMIT,
            AgentStatus.TERMINATED_ERROR,
        )


@dataclass
class LoopState:
    """Progress of one agent run."""

    max_iterations: int
    iteration: int = 0
    status: AgentStatus = AgentStatus.AWAITING_MODEL
    last_assistant: AssistantTurn | None = None
    usage: LLMUsage = field(default_factory=LLMUsage)

    @property
    def budget_exhausted(self) -> bool:
        return self.iteration >= self.max_iterations


@dataclass
class AgentLoopResult:
    """Result from executing an agent loop."""

    content: str
    status: AgentStatus
    iterations: int
    messages: list[Message]
    usage: LLMUsage

    @property
    def completed(self) -> bool:
        return self.status == AgentStatus.TERMINATED_FINAL


class AgentLoop:
    """Bounded invoke/dispatch cycle over an explicit client and registry.

    The registry is frozen when a run starts. Model failures and protocol
    errors end the run and propagate; tool failures reach the model as text.
    """

    def __init__(
        self,
        client: ModelClient,
        registry: ToolsRegistry,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        concurrent_tools: bool = True,
    ):
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")

        self.client = client
        self.registry = registry
        self.dispatcher = ToolDispatcher(registry)
        self.max_iterations = max_iterations
        self.concurrent_tools = concurrent_tools
        self.state: LoopState | None = None
        self.conversation: ConversationState | None = None

    async def run(self, task: str, system_prompt: str | None = None) -> AgentLoopResult:
        """Run the agent on a task until it answers or the budget runs out.

        Args:
            task: The user's request
            system_prompt: Overrides the default project assistant prompt

        Returns:
            The final answer, or the last assistant content if the budget ran out

        Raises:
            ModelInvocationFailed: If the model endpoint fails
            EmptyResponse: If the model returns neither text nor tool calls
            ToolError: If the model calls an unknown tool or passes bad arguments
        """
        self.registry.freeze()
        prompt = system_prompt or get_system_prompt(tool_names=self.registry.get_tool_names())
        conversation = ConversationState.start(prompt, task)
        state = LoopState(max_iterations=self.max_iterations)
        self.conversation = conversation
        self.state = state

        logger.info(f"Starting agent loop with {len(self.registry)} tools, max_iterations: {self.max_iterations}")

        try:
            while not state.budget_exhausted:
                state.iteration += 1
                state.status = AgentStatus.AWAITING_MODEL
                logger.debug(f"Agent loop iteration {state.iteration}/{state.max_iterations}")

                turn = await self.client.invoke(conversation.messages, self.registry.definitions())
                state.usage.add(turn.usage)
                if turn.is_empty:
                    raise EmptyResponse()

                conversation.append_assistant(turn)
                state.last_assistant = turn

                if turn.is_final:
                    state.status = AgentStatus.TERMINATED_FINAL
                    logger.info(f"Agent loop completed in {state.iteration} iterations")
                    return self._result(turn.content or "")

                state.status = AgentStatus.DISPATCHING
                logger.info(f"Model requested {len(turn.tool_calls)} tool call(s)")
                results = await self.dispatcher.dispatch_batch(turn.tool_calls, concurrent=self.concurrent_tools)
                for result in results:
                    conversation.append_tool_result(result)

        except Exception as e:
            state.status = AgentStatus.TERMINATED_ERROR
            logger.error(f"Agent loop aborted at iteration {state.iteration}: {e}")
            raise

        state.status = AgentStatus.TERMINATED_BY_LIMIT
        logger.warning(f"Agent loop reached max iterations ({self.max_iterations})")
        last_content = state.last_assistant.content if state.last_assistant else None
        return self._result(last_content or "")

    def _result(self, content: str) -> AgentLoopResult:
        return AgentLoopResult(
            content=content,
            status=self.state.status,
            iterations=self.state.iteration,
            messages=list(self.conversation.messages),
            usage=self.state.usage,
        )
