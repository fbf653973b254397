"""
ElProfessor agent.

Coordinates Gemini requests, MCP server connectivity and the in-memory
conversation history for the CLI.
"""

import logging
from collections import deque
from typing import AsyncIterator, Deque, List, Optional

from ..mcp.manager import MCPManager
from .client.genai_service import GenAIService
from .client.responses import AgentResponse, ChatMessage, MessageRole
from .client.retry import RetryExecutor
from .config import ElProfessorConfig

logger = logging.getLogger(__name__)

AWS_QUESTION_PROMPT = "As an AWS expert assistant, please help with this AWS-related question: {question}"
TERRAFORM_PROMPT = (
    "Generate Terraform configuration for: {description}. Please provide complete, "
    "production-ready Terraform code with proper resource definitions, variables, and outputs."
)
CDK_PROMPT = (
    "Generate AWS CDK code in {language} for: {description}. Please provide complete, "
    "production-ready CDK code with proper constructs, stacks, and best practices."
)
DIAGRAM_PROMPT = (
    "Create an AWS architecture diagram for: {description}. Please provide a detailed "
    "architecture diagram showing AWS services, connections, and data flow."
)
DOCUMENTATION_PROMPT = (
    "Generate comprehensive documentation for: {subject}. Please include setup "
    "instructions, usage examples, and best practices."
)


class ElProfessor:
    """
    Agent behind the CLI.

    Responsibilities:
    - Start the configured MCP servers and keep their sessions.
    - Send prompts to Gemini with the MCP sessions as tools.
    - Keep a rolling conversation history bounded by ``history_limit``.
    - Build task prompts for Terraform, CDK, diagrams and documentation.
    """

    def __init__(
        self,
        config: ElProfessorConfig,
        genai_service: Optional[GenAIService] = None,
        mcp_manager: Optional[MCPManager] = None,
    ):
        self.config = config
        settings = config.settings
        executor = RetryExecutor()

        self.genai_service = genai_service or GenAIService(
            api_key=config.api_key,
            model=config.model,
            executor=executor,
            retry_config=config.retry_config,
            request_timeout_ms=settings.request_timeout_ms,
        )
        self.mcp_manager = mcp_manager or MCPManager(
            executor=executor,
            retry_config=config.retry_config,
        )
        self._history: Deque[ChatMessage] = deque(maxlen=settings.history_limit)

    async def initialize(self) -> None:
        """Start the enabled MCP servers."""
        logger.info("Initializing ElProfessor CLI...")

        await self.mcp_manager.initialize_servers(self.config.get_enabled_mcp_servers())

        connected = self.mcp_manager.get_connected_servers()
        logger.info(
            f"ElProfessor CLI initialized with {len(connected)} MCP servers: {', '.join(connected) or 'none'}"
        )

    async def chat(self, message: str) -> AgentResponse:
        """Send a message and record both sides in the history."""
        self._add_to_history(MessageRole.USER, message)

        response = await self.genai_service.generate_content(
            message, self.mcp_manager.get_all_clients()
        )

        self._add_to_history(MessageRole.ASSISTANT, response.text)
        return response

    async def chat_stream(self, message: str) -> AsyncIterator[str]:
        """
        Send a message and stream the reply.

        The concatenated reply is added to the history once the stream is
        fully consumed.
        """
        self._add_to_history(MessageRole.USER, message)

        stream = await self.genai_service.generate_content_stream(
            message, self.mcp_manager.get_all_clients()
        )
        return self._record_stream(stream)

    async def _record_stream(self, stream: AsyncIterator[str]) -> AsyncIterator[str]:
        chunks: List[str] = []
        async for chunk in stream:
            chunks.append(chunk)
            yield chunk
        self._add_to_history(MessageRole.ASSISTANT, "".join(chunks))

    async def ask_aws_question(self, question: str) -> AgentResponse:
        return await self.chat(AWS_QUESTION_PROMPT.format(question=question))

    async def generate_terraform(self, description: str) -> AgentResponse:
        return await self.chat(TERRAFORM_PROMPT.format(description=description))

    async def generate_cdk(self, description: str, language: str = "typescript") -> AgentResponse:
        return await self.chat(CDK_PROMPT.format(description=description, language=language))

    async def create_architecture_diagram(self, description: str) -> AgentResponse:
        return await self.chat(DIAGRAM_PROMPT.format(description=description))

    async def generate_documentation(self, code_or_description: str) -> AgentResponse:
        return await self.chat(DOCUMENTATION_PROMPT.format(subject=code_or_description))

    def _add_to_history(self, role: MessageRole, content: str) -> None:
        self._history.append(ChatMessage(role=role, content=content))

    def get_conversation_history(self) -> List[ChatMessage]:
        """Copy of the history in chronological order."""
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()

    def get_connected_servers(self) -> List[str]:
        return self.mcp_manager.get_connected_servers()

    async def shutdown(self) -> None:
        """Close all MCP connections."""
        logger.info("Shutting down ElProfessor CLI...")
        await self.mcp_manager.close_all()
        logger.info("ElProfessor CLI shut down complete")
