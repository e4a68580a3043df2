from state import ChartRequestState

from pipeline.agents.chart_generator_agent import chart_generator_agent
from pipeline.agents.chart_agent import chart_agent


def run_chart_pipeline(state: ChartRequestState) -> ChartRequestState:
    """
    Runs the chart generation pipeline.

    Pipeline:
    1. Chart Generator: asks the LLM for a chart option or KPI card (fallback on bad JSON)
    2. Chart Agent: adds brush, toolbox and tooltip interactivity
    """
    state.setdefault("debug", {})

    print(f"[Pipeline] 1/2 Chart Generator ({state.get('chart_type', 'bar')})...")
    state = chart_generator_agent(state)

    print("[Pipeline] 2/2 Chart Agent...")
    state = chart_agent(state)

    print(f"[Pipeline] Complete: {state['chart'].get('title', '')}")

    return state
