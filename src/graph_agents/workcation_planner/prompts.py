"""Prompt text for the workcation planner."""

WELCOME_MESSAGE = """こんにちは！ワーケーションプランナーです。あなたに最適なワーケーションプランを作成します。

以下の情報を教えてください：
- 行きたい場所
- 期間（何日間）
- 予算"""

CONDITION_CHECK_SYSTEM_PROMPT = """あなたはワーケーションプランナーのアシスタントです。
ユーザーとの会話から、プラン作成に必要な次の3つの条件を集めています。

- 場所（行きたい都市や地域）
- 期間（何日間か）
- 予算（総額、円）

すでに分かっている条件は繰り返し質問せず、足りない条件だけを一度に1つずつ、自然で丁寧な日本語で質問してください。"""

CONDITION_STATUS_TEMPLATE = """
現在の収集状況:
- 場所: {location}
- 期間: {duration}
- 予算: {budget}

足りない情報を自然に質問してください。"""

UNKNOWN_CONDITION = "未確認"

PLANNER_SYSTEM_PROMPT = "あなたは優秀なワーケーションプランナーです。"

PLAN_GENERATION_PROMPT = """{location}で{duration}、予算{budget}のワーケーションプランを作成します。

利用できる検索ツールを使って、次の情報を集めてください：
- 仕事がしやすい宿泊施設（Wi-Fi、デスク）
- コワーキングスペースや作業に向いたカフェ
- 滞在期間に合った観光・アクティビティ
- 現地までのアクセスと現地での交通手段

必要なツールをすべて呼び出してください。"""

CONSOLIDATE_SYSTEM_PROMPT = "あなたは優秀なワーケーションプランナーです。検索結果を基に魅力的で実用的なプランを提案してください。"

CONSOLIDATE_PROMPT = """
以下の検索結果を基に、{location}での{duration}、予算{budget}のワーケーションプランを整理してください。

検索結果:
{tool_results}

プランには以下を含めてください:
- おすすめの宿泊施設（具体的な名前と特徴）
- 仕事に適したワークスペース（Wi-Fi、電源、環境など）
- 観光・アクティビティ（時間帯別の提案）
- 交通手段（アクセス方法と所要時間）
- 概算費用（内訳付き）
- ワーケーションのTips（現地での過ごし方のアドバイス）
"""

IMPROVEMENT_SECTION = "\n\n改善指示:\n{improvement_instructions}"

REFLECTION_SYSTEM_PROMPT = "プランを評価してください。"
REFLECTION_FALLBACK_SYSTEM_PROMPT = "プランを評価してください。必ずJSON形式で応答してください。"

REFLECTION_PROMPT = """
プランの内容:
{plan_text}

条件:
- 場所: {location}
- 期間: {duration}
- 予算: {budget}

次の観点でプランを評価してください:
- 条件（場所・期間・予算）を満たしているか
- 宿泊施設とワークスペースが具体的で、仕事に必要な設備が明記されているか
- 観光・アクティビティが期間に対して無理のない量か
- 概算費用に内訳があり、予算内に収まっているか

以下のJSON形式で応答してください:
{{
  "satisfactory": true または false,
  "feedback": "改善が必要な場合のフィードバック（満足の場合はnull）",
  "improvements": "具体的な改善提案（満足の場合はnull）"
}}"""

REFLECTION_ERROR_FEEDBACK = "プランの評価中にエラーが発生しました。"

EXTRACTION_SYSTEM_PROMPT = "プランから情報を正確に抽出してください。"

EXTRACTION_PROMPT = """
以下のワーケーションプランから、各項目の情報を抽出してください。

プラン:
{plan_text}

抽出する項目:
- accommodations: 宿泊施設の名前と特徴
- workspaces: コワーキングスペースやカフェの名前と特徴
- activities: 観光地やアクティビティ
- transportation: 交通手段とアクセス方法
- estimated_cost: 概算費用（総額と内訳）
- tips: ワーケーションを楽しむためのアドバイス

JSON形式で応答してください。"""

PLAN_SUMMARY_TEMPLATE = """
ワーケーションプランが完成しました！

**場所**: {location}
**期間**: {duration}
**予算**: {budget}

**宿泊施設**:
{accommodations}

**ワークスペース**:
{workspaces}

**観光・アクティビティ**:
{activities}

**交通手段**:
{transportation}

**概算費用**:
{estimated_cost}

**Tips**:
{tips}
"""
