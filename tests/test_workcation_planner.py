import json

import pytest
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from fakes import FakeSearch, PlainTextChatModel, ScriptedChatModel
from graph_agents.config.configuration import WorkcationPlannerConfiguration
from graph_agents.core.errors import EmptyGenerationError, StepExecutionError
from graph_agents.workcation_planner import WORKCATION_PLANNER_SCHEMA, compile_graph
from graph_agents.workcation_planner.graph import create_improvement_router
from graph_agents.workcation_planner.nodes import WorkcationPlannerNodes
from graph_agents.workcation_planner.prompts import REFLECTION_ERROR_FEEDBACK, WELCOME_MESSAGE
from graph_agents.workcation_planner.state import PlanDetails, Reflection
from graph_agents.workcation_planner.tools import initialize_tools

TOKYO = {"location": "東京", "duration": "3日間", "budget": "50,000円"}
REQUEST = "東京に3日間、予算5万円で行きたい"

PLAN_DETAILS = PlanDetails(
    accommodations=["ホテルA（デスク付き）"],
    workspaces=["コワーキングB"],
    activities=["浅草散策"],
    transportation="電車",
    estimated_cost="45,000円",
    tips=["朝型で仕事を片付ける"],
)


def research_request():
    return AIMessage(
        content="",
        tool_calls=[
            {"name": "search_accommodations", "args": {"location": "東京", "budget": "50,000円"}, "id": "call_1"},
            {"name": "search_workspaces", "args": {"location": "東京"}, "id": "call_2"},
        ],
    )


def make_app(model, search=None, **config):
    return compile_graph(
        model=model,
        config=WorkcationPlannerConfiguration(**config),
        search=search or FakeSearch(),
    )


def state_with(**update):
    return WORKCATION_PLANNER_SCHEMA.merge(WORKCATION_PLANNER_SCHEMA.initial(), update)


def ask(app, text, state):
    return app.invoke({"messages": [HumanMessage(content=text)]}, previous=state)


# --- Condition gathering ---

def test_first_run_greets_and_stops():
    model = ScriptedChatModel()
    state = make_app(model).invoke({})

    assert [m.content for m in state["messages"]] == [WELCOME_MESSAGE]
    assert state["required_conditions"] == {"location": None, "duration": None, "budget": None}
    assert state["conditions_complete"] is False
    assert model.calls == []


def test_missing_conditions_end_the_turn_with_a_question():
    model = ScriptedChatModel(responses=["期間と予算を教えてください。", "ありがとうございます。"])
    app = make_app(model)
    state = app.invoke({})

    state = ask(app, "東京に行きたい", state)
    assert state["required_conditions"] == {"location": "東京", "duration": None, "budget": None}
    assert state["conditions_complete"] is False
    assert state["messages"][-1].content == "期間と予算を教えてください。"
    assert state["final_plan"] is None

    status = model.calls[0][-1].content
    assert "場所: 未確認" in status
    assert "期間: 未確認" in status


def test_conditions_accumulate_across_turns():
    model = ScriptedChatModel(
        responses=["期間と予算は？", "了解です。", research_request(), "プラン案"],
        structured=[Reflection(satisfactory=True), PLAN_DETAILS],
    )
    app = make_app(model)
    state = ask(app, "東京に行きたい", app.invoke({}))
    state = ask(app, "3日間で予算5万円です", state)

    assert state["required_conditions"] == TOKYO
    assert state["final_plan"].location == "東京"


# --- Full run ---

def test_complete_request_produces_a_final_plan():
    search = FakeSearch()
    model = ScriptedChatModel(
        responses=["ありがとうございます。", research_request(), "東京ワーケーションプラン案"],
        structured=[Reflection(satisfactory=True), PLAN_DETAILS],
    )
    app = make_app(model, search=search)
    state = ask(app, REQUEST, app.invoke({}))

    plan = state["final_plan"]
    assert plan.location == "東京"
    assert plan.duration == "3日間"
    assert plan.budget == "50,000円"
    assert plan.accommodations == ["ホテルA（デスク付き）"]
    assert state["current_plan"] == plan
    assert state["reflection_count"] == 1
    assert state["generated_plan_text"] == "東京ワーケーションプラン案"

    summary = state["messages"][-1]
    assert isinstance(summary, AIMessage)
    assert "ワーケーションプランが完成しました！" in summary.content
    assert "- コワーキングB" in summary.content

    assert len(search.queries) == 2
    assert {t.name for t in model.bound_tools} == {
        "web_search",
        "search_accommodations",
        "search_workspaces",
        "search_activities",
        "search_transportation",
    }
    consolidate_prompt = model.calls[2][-1].content
    assert "宿泊施設の検索結果" in consolidate_prompt
    assert "ワークスペースの検索結果" in consolidate_prompt


def test_unsatisfactory_reflections_loop_back_to_consolidate():
    model = ScriptedChatModel(
        responses=["ありがとうございます。", research_request(), "案1", "案2", "案3"],
        structured=[
            Reflection(satisfactory=False, feedback="費用が曖昧", improvements="費用の内訳を追加"),
            Reflection(satisfactory=False, feedback="Tipsがない", improvements="Tipsを追加"),
            Reflection(satisfactory=True),
            PLAN_DETAILS,
        ],
    )
    app = make_app(model)
    state = ask(app, REQUEST, app.invoke({}))

    assert state["reflection_count"] == 3
    assert state["generated_plan_text"] == "案3"
    assert state["final_plan"] is not None
    assert "改善指示:\n費用の内訳を追加" in model.calls[3][-1].content
    assert "改善指示:\nTipsを追加" in model.calls[4][-1].content
    # An approving reflection carries no instructions
    assert state["improvement_instructions"] is None


def test_a_second_plan_starts_a_fresh_reflection_loop():
    def rejected(improvements):
        return Reflection(satisfactory=False, feedback="不足", improvements=improvements)

    model = ScriptedChatModel(
        responses=["ありがとうございます。", research_request(), "案1", "案2",
                   research_request(), "案3", "案4"],
        structured=[rejected("A"), rejected("B"), PLAN_DETAILS,
                    rejected("C"), Reflection(satisfactory=True), PLAN_DETAILS],
    )
    app = make_app(model, max_reflections=2)
    state = ask(app, REQUEST, app.invoke({}))
    assert state["reflection_count"] == 2
    assert state["improvement_instructions"] == "B"

    state = ask(app, "別のプランも見たい", state)

    # calls: check, research, 案1, 案2, research, 案3, 案4
    assert "改善指示" not in model.calls[5][-1].content
    assert "改善指示:\nC" in model.calls[6][-1].content
    assert state["reflection_count"] == 2
    assert state["reflection_result"]["satisfactory"] is True
    assert state["generated_plan_text"] == "案4"


def test_reflection_limit_forces_finalize():
    model = ScriptedChatModel(
        responses=["ありがとうございます。", research_request(), "案1", "案2"],
        structured=[Reflection(satisfactory=False), Reflection(satisfactory=False), PLAN_DETAILS],
    )
    app = make_app(model, max_reflections=2)
    state = ask(app, REQUEST, app.invoke({}))

    assert state["reflection_count"] == 2
    assert state["reflection_result"]["satisfactory"] is False
    assert state["final_plan"] is not None


def test_plain_text_model_uses_the_json_fallbacks():
    model = PlainTextChatModel(responses=[
        "ありがとうございます。",
        "検索なしで考えます。",
        "プラン案",
        '```json\n{"satisfactory": true, "feedback": null}\n```',
        json.dumps(PLAN_DETAILS.model_dump(), ensure_ascii=False),
    ])
    app = make_app(model)
    state = ask(app, REQUEST, app.invoke({}))

    assert state["final_plan"].workspaces == ["コワーキングB"]
    assert not any(isinstance(m, ToolMessage) for m in state["messages"])


def test_empty_plan_aborts_the_run():
    model = ScriptedChatModel(responses=["ありがとうございます。", research_request(), "   "])
    app = make_app(model)

    with pytest.raises(StepExecutionError) as exc_info:
        ask(app, REQUEST, app.invoke({}))
    assert exc_info.value.step == "consolidate"
    assert isinstance(exc_info.value.cause, EmptyGenerationError)


# --- Individual nodes ---

@pytest.mark.anyio
async def test_tools_node_keeps_call_order_and_reports_errors(fake_search):
    nodes = WorkcationPlannerNodes(ScriptedChatModel(), initialize_tools(fake_search))
    request = AIMessage(content="", tool_calls=[
        {"name": "search_workspaces", "args": {"location": "福岡"}, "id": "a"},
        {"name": "book_flight", "args": {}, "id": "b"},
        {"name": "search_transportation", "args": {"location": "沖縄", "origin": "東京"}, "id": "c"},
    ])

    update = await nodes.run_tools(state_with(messages=[request]))
    messages = update["messages"]

    assert [m.tool_call_id for m in messages] == ["a", "b", "c"]
    assert messages[0].content.startswith("ワークスペースの検索結果:")
    assert messages[1].status == "error"
    assert json.loads(messages[1].content) == {"error": "Execution failed: Unknown tool 'book_flight' called."}
    # Calls run concurrently, so only the set of queries is fixed
    assert sorted(fake_search.queries) == sorted([
        "福岡 コワーキングスペース カフェ 仕事 Wi-Fi 電源",
        "東京から沖縄 交通手段 アクセス 料金",
    ])
    assert len(update["tool_results"]) == 3


@pytest.mark.anyio
async def test_tools_node_turns_search_failures_into_error_messages():
    nodes = WorkcationPlannerNodes(ScriptedChatModel(), initialize_tools(FakeSearch(error=RuntimeError("rate limited"))))
    request = AIMessage(content="", tool_calls=[{"name": "web_search", "args": {"query": "東京 ワーケーション"}, "id": "x"}])

    update = await nodes.run_tools(state_with(messages=[request]))
    message = update["messages"][0]
    assert message.status == "error"
    assert "rate limited" in json.loads(message.content)["error"]


@pytest.mark.anyio
async def test_tools_node_without_tool_calls_is_a_no_op(fake_search):
    nodes = WorkcationPlannerNodes(ScriptedChatModel(), initialize_tools(fake_search))
    assert await nodes.run_tools(state_with(messages=[AIMessage(content="no tools")])) == {}


@pytest.mark.anyio
async def test_unparseable_reflection_counts_as_unsatisfactory(fake_search):
    nodes = WorkcationPlannerNodes(PlainTextChatModel(responses=["とても良いプランです"]), initialize_tools(fake_search))
    state = state_with(required_conditions=TOKYO, generated_plan_text="案", reflection_count=1)

    update = await nodes.reflect(state)
    assert update["reflection_result"] == {"satisfactory": False, "feedback": REFLECTION_ERROR_FEEDBACK}
    assert update["reflection_count"] == 2
    assert "improvement_instructions" not in update


@pytest.mark.anyio
async def test_reflect_requires_a_plan(fake_search):
    nodes = WorkcationPlannerNodes(ScriptedChatModel(), initialize_tools(fake_search))
    with pytest.raises(EmptyGenerationError):
        await nodes.reflect(state_with(required_conditions=TOKYO))


@pytest.mark.anyio
async def test_known_conditions_skip_the_model(fake_search):
    model = ScriptedChatModel()
    nodes = WorkcationPlannerNodes(model, initialize_tools(fake_search))
    state = state_with(messages=[HumanMessage(content="よろしく")], required_conditions=TOKYO)

    assert await nodes.check_conditions(state) == {"conditions_complete": True}
    assert model.calls == []


@pytest.mark.anyio
async def test_custom_condition_prompt_is_used(fake_search):
    model = ScriptedChatModel(responses=["どちらへ？"])
    config = WorkcationPlannerConfiguration(condition_check_prompt="条件を聞いてください。")
    nodes = WorkcationPlannerNodes(model, initialize_tools(fake_search), config)

    await nodes.check_conditions(state_with(messages=[HumanMessage(content="こんにちは")]))
    assert model.calls[0][0].content == "条件を聞いてください。"


def test_improvement_router():
    route = create_improvement_router(max_reflections=3)
    assert route({"reflection_result": {"satisfactory": True}, "reflection_count": 1}) == "finalize"
    assert route({"reflection_result": {"satisfactory": False}, "reflection_count": 2}) == "improve"
    assert route({"reflection_result": {"satisfactory": False}, "reflection_count": 3}) == "finalize"
    assert route({"reflection_result": None, "reflection_count": 0}) == "improve"
