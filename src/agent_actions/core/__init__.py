from agent_actions.core.agent import AgentContext, build_context, build_wallet

__all__ = ["AgentContext", "build_context", "build_wallet"]
