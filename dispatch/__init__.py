#Expose the high-level pipeline pieces:
#Candidate filtering (hard rules)
#Scoring / ranking
#AssignmentEngine (pure selection)
#AssignmentService orchestrator (the "one call" entry point)

from .candidate_filter import build_base_candidates, locate_eligible_agents
from .scoring import rank_candidates
from .engine import select_agent, AgentSelection, NoEligibleAgent
from .policy import DispatchPolicy, default_dispatch_policy, policy_from_env
from .workload import WorkloadIndex
from .dispatcher import AssignmentService, AssignmentResult #the main class to call to assign an order to an agent
from .moderation import AgentModerationService

__all__ = [
    "build_base_candidates",
    "locate_eligible_agents",
    "rank_candidates",
    "select_agent",
    "AgentSelection",
    "AgentModerationService",
    "NoEligibleAgent",
    "DispatchPolicy",
    "default_dispatch_policy",
    "policy_from_env",
    "WorkloadIndex",
    "AssignmentService",
    "AssignmentResult",
]
