from dataclasses import replace

from agents.models import Agent, AgentStatus


class AgentStateException(Exception):
    """Raised when an invalid agent transition is attempted."""
    pass


def approve_agent(agent: Agent) -> Agent:
    """
    Admin approval. Pending or previously rejected agents become Active
    and start showing up in the candidate pool.
    Approving an already active agent is a no-op, not an error.
    """
    if agent.status == AgentStatus.ACTIVE:
        return agent

    # Because Agent is a frozen dataclass, we must return a new instance via replace
    return replace(agent, status=AgentStatus.ACTIVE)


def reject_agent(agent: Agent) -> Agent:
    """
    Admin rejection. The agent drops out of assignment immediately;
    callers are expected to discard their live location too.
    """
    if agent.status == AgentStatus.REJECTED:
        return agent

    return replace(agent, status=AgentStatus.REJECTED)


def apply_admin_decision(agent: Agent, decision: str) -> Agent:
    """
    Maps the dashboard's "approve" / "reject" actions onto the transitions above.
    """
    if decision == "approve":
        return approve_agent(agent)
    if decision == "reject":
        return reject_agent(agent)
    raise AgentStateException(f"Unknown admin decision {decision!r} for agent {agent.id}")
