"""Prompt builders for every generation feature.

WHY: Prompt text is long, Korean, and edited often. Keeping it out of the
service layer lets the generator code read as plain control flow, and
keeps the trimming rules (how much of a script each prompt sees) testable
without a network.

HOW: One pure function per feature returns the full prompt string.
Long inputs are cut with clip() before interpolation; limits are
module-level constants so they can be tuned in one place.

RULES:
- Functions are pure: same input, same prompt
- Inputs are clipped to the *_CHARS limits below, never sent whole
- Output language of every prompt is Korean, except image prompts,
  which ask for English prompt text plus a Korean description
"""

from __future__ import annotations

from script_studio.core.ir import ScriptAnalysis

TOPIC_SCRIPT_CHARS = 2000
HISTORY_CHARS = 1000
STANDARD_CONTEXT_CHARS = 500
YADAM_ORIGINAL_CHARS = 5000
ANALYSIS_CHARS = 5000
SHORTS_SOURCE_CHARS = 500
IMAGE_PROMPT_SCRIPT_CHARS = 3000
TITLE_SCRIPT_CHARS = 500
THUMBNAIL_SCRIPT_CHARS = 500
CHANNEL_PLAN_SCRIPT_CHARS = 2000

TOPIC_SYSTEM_INSTRUCTION = (
    "You are a creative YouTube strategist. "
    "Analyze content and suggest viral video topics."
)

POPULAR_YADAM_REFERENCE = """조선시대 야담 중 인기 있는 이야기들:
1. 흥부와 놀부: 형제간의 선악 대비
2. 춘향전: 신분을 넘는 사랑과 절개
3. 토끼전: 꾀로 용왕을 속인 토끼
4. 홍길동전: 차별에 맞선 의적
5. 허생전: 통쾌한 장사와 양반 풍자
6. 장화홍련전: 억울한 누명과 해원
7. 삼년고개: 역발상으로 푼 문제
8. 봉이 김선달: 재치 있는 사기꾼

공통점: 신분 역전의 통쾌함, 약자의 승리, 권력자의 허점, 기발한 반전"""


def clip(text: str, limit: int, marker: str = "...") -> str:
    """Cut text to limit chars, appending marker when something was cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + marker


def yadam_target_length(input_length: int) -> str:
    """Target length instruction for a folk-tale script, by input length.

    Short inputs are expanded to 8,000-10,000 chars, inputs already in
    that band keep their length, and longer ones are condensed into it.
    """
    if input_length < 1000:
        return "약 8,000~10,000자 내외 (충분히 상세하고 풍성하게)"
    if input_length < 8000:
        return "약 8,000~10,000자 내외 (상세하고 풍성하게)"
    if input_length <= 10000:
        return "약 {}자 정도 (입력 대본과 비슷한 길이로)".format(input_length)
    return "약 8,000~10,000자 내외로 핵심을 유지하면서 간추려서"


def topics_prompt(script: str) -> str:
    return """다음 유튜브 대본(또는 아이디어)을 분석해서, 이와 연관되거나 파생될 수 있는 흥미로운 유튜브 영상 주제 3가지를 추천해줘.

입력된 대본:
"{script}"

조건:
1. 한글로 작성할 것.
2. 클릭하고 싶은 매력적인 제목 형태로 3가지만 추천할 것.""".format(
        script=clip(script, TOPIC_SCRIPT_CHARS)
    )


def standard_script_prompt(topic: str, original: str, history: str | None = None) -> str:
    history_block = ""
    if history:
        history_block = (
            "\n\n[참고용 과거 대본 스타일]\n{}\n"
            "위 스타일을 참고하되, 주제에 맞게 새롭게 작성해주세요."
        ).format(clip(history, HISTORY_CHARS))

    return """다음 주제로 유튜브 영상 대본을 작성해줘.

주제: "{topic}"
참고(이전 대본 맥락): "{context}..."{history}

형식:
[오프닝] - 시청자의 주의를 끄는 멘트
[본론] - 핵심 내용 3가지
[클로징] - 요약 및 구독 유도

한글로 자연스럽게 작성해줘.""".format(
        topic=topic,
        context=original[:STANDARD_CONTEXT_CHARS],
        history=history_block,
    )


def yadam_script_prompt(topic: str, original: str, history: str | None = None) -> str:
    trimmed = clip(
        original,
        YADAM_ORIGINAL_CHARS,
        marker="...\n(이하 생략, 전체 맥락을 참고하여 작성)",
    )
    history_block = ""
    if history:
        history_block = "\n\n[참고용 과거 야담 대본]\n{}".format(clip(history, HISTORY_CHARS))

    return """너는 조선시대 야담 전문 스토리텔러야.

주제: "{topic}"

사용자가 입력한 대본 (참고용):
\"\"\"
{original}
\"\"\"{history}

## 핵심 지침
주제("{topic}")에 딱 맞는 완전히 새로운 조선시대 야담을 창작해줘.
- 입력 대본의 문체, 후킹 방식, 구성만 참고할 것
- 내용과 플롯은 주제에 맞게 새로 만들 것
- 길이: {length}

## 야담 스타일
- "전하는 바에 의하면", "옛날 어느 때" 같은 구전 화법
- 신분 역전, 권력자의 허점, 지혜로운 서민, 도깨비 같은 초자연적 요소
- 통쾌한 반전이나 교훈

형식:
[도입] - 호기심을 자극하는 오프닝 (3문장)
[전개] - 구체적인 상황과 갈등
[절정] - 반전 또는 결정적 순간
[마무리] - 여운과 교훈""".format(
        topic=topic,
        original=trimmed,
        history=history_block,
        length=yadam_target_length(len(original)),
    )


def analysis_prompt(script: str) -> str:
    return """# Role
너는 구독자 100만 명 유튜브 채널의 메인 PD이자 시나리오 작가야.
냉철하고 비판적인 시각으로 아래 대본을 분석해.

# Task
시청자 이탈이 생길 수 있는 약점을 찾아내고 수정안을 제안해.

## 대본 (핵심 부분)
\"\"\"
{script}
\"\"\"

# Analysis Criteria
1. [후킹 점수]: 초반 30초 안에 호기심을 자극하는지 (10점 만점)
2. [논리적 허점]: 근거가 부족하거나 비약이 심한 구간
3. [지루함 경보]: 문장이 길거나 서론이 늘어지는 이탈 위험 구간

응답은 반드시 JSON 형식으로만 출력해줘.""".format(script=script[:ANALYSIS_CHARS])


def shorts_prompt(long_script: str, history: str | None = None) -> str:
    history_block = ""
    if history:
        history_block = "\n\n[과거 생성한 야담 스타일]\n{}".format(history)

    return """# Role
너는 유튜브 숏츠 전문 작가야. 조선시대 야담 스타일로 60초 이내 숏츠 대본을 만들어.

## 참고할 인기 야담 스타일
{reference}

## 원본 대본 (참고)
\"\"\"
{source}
\"\"\"{history}

## 작성 원칙
1. 첫 3초에 충격적인 질문이나 반전
2. 읽는 데 50-60초 걸리는 분량
3. 중간에 예상 못한 전개
4. 한 문장은 15자 이내
5. "구독하세요" 대신 생각할 거리로 마무리

JSON으로 응답해줘:
- title: 클릭을 유도하는 제목 (20자 이내)
- script: 실제 대본
- duration: 예상 소요 시간(초)
- reference: 참고한 야담 이름 (예: "허생전 스타일")""".format(
        reference=POPULAR_YADAM_REFERENCE,
        source=long_script[:SHORTS_SOURCE_CHARS],
        history=history_block,
    )


def image_prompts_prompt(script: str) -> str:
    return """너는 AI 이미지 생성 전문가야. 아래 조선시대 야담 대본에 등장하는 주요 인물들의 캐릭터 이미지 프롬프트를 만들어줘.

대본:
\"\"\"
{script}
\"\"\"

## 작업 지침
1. 주요 인물 파악 (최대 8명)
2. 인물별 신분, 성격, 외모 분석
3. Midjourney/DALL-E/Stable Diffusion용 영문 프롬프트 작성
4. 조선시대 복식, 머리 모양, 분위기를 구체적으로 묘사

## 키워드 가이드
- 신분: scholar, nobleman, commoner, gisaeng, official, merchant
- 복식: white hanbok, colorful hanbok, official robe
- 스타일: Joseon dynasty, traditional Korean, historical portrait, 4K, cinematic lighting

각 항목 필드:
- sentence: "인물 이름 - 한 줄 설명"
- imagePrompt: 영문 프롬프트
- koreanDescription: 한글 설명
- sceneNumber: 1부터 시작하는 번호

결과는 JSON 배열로 생성해줘.""".format(script=script[:IMAGE_PROMPT_SCRIPT_CHARS])


def title_prompt(script: str) -> str:
    return """다음 조선시대 야담 대본을 보고, 클릭률을 극대화할 유튜브 제목을 만들어줘.

대본:
"{script}..."

조건:
1. 호기심과 궁금증을 자극
2. 20-40자 이내
3. 숫자나 질문 형식 활용
4. "조선시대", "야담", "실화" 같은 키워드 포함
5. 자극적이되 대본 내용과 일치

제목만 반환해줘.""".format(script=script[:TITLE_SCRIPT_CHARS])


def thumbnails_prompt(script: str, title: str) -> str:
    return """다음 조선시대 야담 대본과 제목을 보고, 클릭률을 높일 썸네일 디자인 3가지를 제안해줘.

제목: "{title}"
대본: "{script}..."

조건:
1. 썸네일마다 다른 컨셉 (캐릭터 클로즈업, 절정 장면, 신비로운 분위기 등)
2. 조선시대 분위기 (한복, 한옥, 수묵화 스타일)
3. AI 이미지 생성용 영문 프롬프트 포함
4. 썸네일에 넣을 텍스트 추천

각 항목: id, concept(한글 설명), prompt(영문 프롬프트), textOverlay(썸네일 텍스트)""".format(
        title=title,
        script=script[:THUMBNAIL_SCRIPT_CHARS],
    )


def improvement_prompt(script: str, analysis: ScriptAnalysis) -> str:
    flaws = "\n".join(
        "{}. [문제] {}\n   [제안] {}".format(i, f.issue, f.suggestion)
        for i, f in enumerate(analysis.logical_flaws, 1)
    )
    boring = "\n".join(
        "{}. [이탈위험] {}".format(i, b.reason)
        for i, b in enumerate(analysis.boring_parts, 1)
    )

    return """# Role
너는 100만 구독자 유튜브 채널의 메인 시나리오 작가야.
메인 PD의 분석 결과를 토대로 대본을 개선해야 해.

# 원본 대본
\"\"\"
{script}
\"\"\"

# PD 분석 결과
## 후킹 점수: {score}/10
{hooking}

## 논리적 허점
{flaws}

## 지루함 경보 구간
{boring}

## 종합 의견
{overall}

## 실행 계획
{action}

# 개선 방향
1. 초반 30초 안에 시청자를 사로잡는 오프닝
2. 지적된 논리적 허점을 근거와 함께 보완
3. 지루한 구간은 간결하게, 전개는 긴장감 있게
4. 기존 야담 톤앤매너 유지
5. 원본과 비슷한 길이(8,000-10,000자)

응답은 개선된 대본만 출력해. 메타 설명이나 주석은 불필요해.""".format(
        script=script,
        score=_format_score(analysis.hooking_score),
        hooking=analysis.hooking_comment,
        flaws=flaws or "없음",
        boring=boring or "없음",
        overall=analysis.overall_comment,
        action=analysis.action_plan,
    )


def channel_plan_prompt(script: str, topic: str) -> str:
    return """너는 유튜브 채널 기획 전문가야. 아래 조선시대 야담 대본과 주제를 분석해서 성장 가능성이 큰 채널 기획서를 만들어줘.

대본:
\"\"\"
{script}
\"\"\"

주제: "{topic}"

## 기획서 항목
1. 타겟 시청자: 20-40대, 재미와 교훈을 함께 원하는 시청자
2. 콘텐츠 전략: 10-20분 롱폼, 스토리텔링 + 교훈
3. 경쟁 우위: AI 기반 빠른 제작과 트렌드 대응
4. 트렌드 분석: 최근 1개월 조회수 높은 야담/역사 콘텐츠 패턴
5. 영상 구성안: 타임라인 포함 (인트로, 본 이야기, 교훈, 아웃트로)
6. 수익화 방안: 광고, 멤버십, 제휴
7. 업로드 계획: 빈도, 시간대, 시리즈 기획

JSON 필드: topic, targetAudience, contentStrategy, competitiveAdvantage, trendAnalysis, videoStructure, monetizationPlan, uploadSchedule""".format(
        script=script[:CHANNEL_PLAN_SCRIPT_CHARS],
        topic=topic,
    )


def _format_score(score: float) -> str:
    return str(int(score)) if float(score).is_integer() else "{:.1f}".format(score)
