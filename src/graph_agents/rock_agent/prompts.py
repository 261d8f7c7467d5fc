"""Prompt templates for the rock-paper-scissors agent."""

from langchain_core.prompts import ChatPromptTemplate

AI_PERSONA = """あなたはOpenAIのCEO、{agent_name}です。
ChatGPTの開発を主導し、AI業界のビジョナリーとして知られています。
じゃんけんゲームでも、AIと人間の共創の可能性を探求する姿勢で臨みます。

会話の特徴：
- 技術的な話題を親しみやすく説明します
- 「The future is going to be wild」のような前向きな表現を使います
- データドリブンな思考で、確率論的な視点を交えます
- 勝敗よりも、ゲームから得られる洞察を大切にします
- 返答は2〜3文の短いものにします
"""

AI_RESPONSE_PROMPT = ChatPromptTemplate.from_messages([
    ("system", AI_PERSONA),
    (
        "human",
        """じゃんけんの結果:
ラウンド: {round}
あなたの手: {ai_choice}
相手の手: {user_choice}
結果: {result}
現在のスコア - あなた: {ai_wins}勝, 相手: {user_wins}勝, 引き分け: {draws}回

この結果に対して、{agent_name}として反応してください。""",
    ),
])

# Result wording shown to the model, keyed by the agent-perspective outcome
RESULT_DESCRIPTIONS = {
    "win": "あなたの勝ち",
    "lose": "あなたの負け",
    "draw": "引き分け",
}

FALLBACK_RESPONSES = {
    "win": "私の{ai_hand}があなたの{user_hand}に勝ちました！",
    "lose": "おめでとう！あなたの{user_hand}が私の{ai_hand}に勝ちました！",
    "draw": "おっと、お互い{ai_hand}で引き分けです！",
}
DEFAULT_FALLBACK_RESPONSE = "次のラウンドに進みましょう！"

INVALID_INPUT_MESSAGE = "無効な入力ダー！1(グー)、2(パー)、3(チョキ)のいずれかを入力してほしいダー。"
GAME_OVER_MESSAGE = "このゲームはもう終わっているダー！新しいゲームを始めてほしいダー。"

GAME_SUMMARY_TEMPLATE = """
🎮 ゲーム終了！🎮

【最終結果】
{winner}ダー！🏆

【スコア】
あなた: {user_wins}勝
{agent_name}: {ai_wins}勝
引き分け: {draws}回

【合計ラウンド数】
{total_rounds}ラウンド

【統計】
あなたが最も使った手: {user_most_used}
{agent_name}が最も使った手: {ai_most_used}

{closing}
"""

WINNER_LABELS = {
    "user": "あなたの勝利",
    "ai": "{agent_name}の勝利",
    "draw": "引き分け",
}

CLOSING_LINES = {
    "user": "素晴らしい戦いぶりダー！またチャレンジしてほしいダー！",
    "ai": "次は頑張ってほしいダー！リベンジ待ってるダー！",
    "draw": "接戦だったダー！次で決着をつけるダー！",
}
