import random

import pytest

from agents.models import Agent, AgentStatus
from dispatch.candidate_filter import CandidateAgent, build_base_candidates, locate_eligible_agents
from dispatch.engine import AgentSelection, NoEligibleAgent, select_agent
from dispatch.scoring import AssignmentCandidate, rank_candidates
from routing.geo import Coordinate


@pytest.fixture
def restaurant():
    return Coordinate(17.3850, 78.4867)


def test_least_loaded_agent_beats_the_closest(restaurant):
    """
    A is ~0.1 km away with 2 open orders, B is ~3 km away with none: B gets the order.
    """
    agents = [
        CandidateAgent("A", Coordinate(17.3860, 78.4870), workload=2),
        CandidateAgent("B", Coordinate(17.4000, 78.5100), workload=0),
    ]

    selection = select_agent(restaurant, agents, max_radius_km=10.0)

    assert isinstance(selection, AgentSelection)
    assert selection.agent_id == "B"
    assert selection.workload == 0
    assert selection.distance_km == pytest.approx(2.98, abs=0.02)
    assert selection.candidates_considered == 2


def test_nobody_in_range_is_a_value_not_an_exception(restaurant):
    agents = [CandidateAgent("C", Coordinate(20.0, 80.0), workload=0)]

    selection = select_agent(restaurant, agents, max_radius_km=10.0)

    assert selection == NoEligibleAgent(radius_km=10.0, agents_considered=1)


def test_empty_pool(restaurant):
    assert isinstance(select_agent(restaurant, []), NoEligibleAgent)


def test_equal_load_prefers_the_closer_agent(restaurant):
    agents = [
        CandidateAgent(2, Coordinate(17.4000, 78.5100), workload=1),
        CandidateAgent(1, Coordinate(17.3860, 78.4870), workload=1),
    ]
    assert select_agent(restaurant, agents).agent_id == 1


def test_full_tie_resolves_to_lowest_id_regardless_of_input_order(restaurant):
    spot = Coordinate(17.3900, 78.4900)
    agents = [CandidateAgent(agent_id, spot, workload=0) for agent_id in (7, 3, 5)]

    for _ in range(5):
        random.shuffle(agents)
        assert select_agent(restaurant, agents).agent_id == 3


def test_distance_is_rounded_for_reporting(restaurant):
    selection = select_agent(restaurant, [CandidateAgent(1, Coordinate(17.4000, 78.5100))])
    assert selection.distance_km == round(selection.distance_km, 2)


def test_out_of_range_agents_never_win_even_when_idle(restaurant):
    agents = [
        CandidateAgent("busy_near", Coordinate(17.3860, 78.4870), workload=4),
        CandidateAgent("idle_far", Coordinate(20.0, 80.0), workload=0),
    ]
    assert select_agent(restaurant, agents, max_radius_km=10.0).agent_id == "busy_near"


def test_rank_candidates_orders_by_load_then_distance_then_id():
    ranked = rank_candidates([
        AssignmentCandidate("c", 1.0, 1),
        AssignmentCandidate("b", 5.0, 0),
        AssignmentCandidate("a", 5.0, 0),
        AssignmentCandidate("d", 0.5, 1),
    ])
    assert [c.agent_id for c in ranked] == ["a", "b", "d", "c"]


def test_locate_eligible_agents_filters_status_and_missing_positions():
    class Live:
        def __init__(self, coordinate):
            self.coordinate = coordinate

    agents = [
        Agent.new(1, 17.3860, 78.4870, AgentStatus.ACTIVE),
        Agent.new(2, 17.3860, 78.4870, AgentStatus.PENDING),
        Agent.new(3, 17.3860, 78.4870, AgentStatus.REJECTED),
        Agent.new(4, None, None, AgentStatus.ACTIVE),
        Agent.new(5, None, None, AgentStatus.ACTIVE),
    ]
    live = {5: Live(Coordinate(17.39, 78.49)), 1: Live(Coordinate(17.40, 78.50))}

    located = locate_eligible_agents(agents, live)

    assert [agent.id for agent in located] == [1, 5]
    # live position wins over the persisted one
    assert located[0].location == Coordinate(17.40, 78.50)


def test_build_base_candidates_defaults_missing_workload_to_zero():
    agents = [Agent.new(1, 17.38, 78.48, "Active"), Agent.new(2, 17.39, 78.49, "Active")]
    candidates = build_base_candidates(agents, {1: 3})
    assert [(c.agent_id, c.workload) for c in candidates] == [(1, 3), (2, 0)]
