"""LangGraph workflow assembly for a single agent-processing run."""

from langgraph.graph import END, StateGraph

from kanban_agents.agents import AgentSuite
from kanban_agents.events.publisher import EventPublisher
from kanban_agents.pipeline.nodes import analyze, brain, execute, finalize, select
from kanban_agents.pipeline.state import PipelineState


def build_graph(agents: AgentSuite, *, publisher: EventPublisher | None = None):
    async def _select(state: PipelineState) -> PipelineState:
        return await select.run(state, agents)

    async def _build_context(state: PipelineState) -> PipelineState:
        return await brain.run(state, agents)

    async def _analyze(state: PipelineState) -> PipelineState:
        return await analyze.run(state, agents)

    async def _execute(state: PipelineState) -> PipelineState:
        return await execute.run(state, agents)

    async def _finalize(state: PipelineState) -> PipelineState:
        return await finalize.run(state, publisher)

    def _should_execute_actions(state: PipelineState) -> str:
        return "execute" if execute.has_actions(state) else "done"

    graph = StateGraph(PipelineState)

    graph.add_node("select_agents", _select)
    graph.add_node("build_context", _build_context)
    graph.add_node("analyze", _analyze)
    graph.add_node("execute_actions", _execute)
    graph.add_node("finalize", _finalize)

    graph.set_entry_point("select_agents")
    graph.add_edge("select_agents", "build_context")
    graph.add_edge("build_context", "analyze")
    graph.add_conditional_edges(
        "analyze", _should_execute_actions, {"execute": "execute_actions", "done": "finalize"}
    )
    graph.add_edge("execute_actions", "finalize")
    graph.add_edge("finalize", END)

    return graph.compile()
