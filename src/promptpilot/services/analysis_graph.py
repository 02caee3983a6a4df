"""LangGraph state machine behind the analyze-prompt function."""

import logging
from typing import Any, Dict, List, Optional, TypedDict

from langgraph.graph import END, StateGraph

from ..config import settings
from ..exceptions import LLMError
from ..models.analysis import AnalyzePromptRequest, Question, Usage, Variable
from .analysis import (
    append_examples,
    compute_ambiguity,
    generate_context_questions,
    generate_contextual_variables,
    organize_questions_by_pillar,
    parse_json_reply,
    sanitize_question_text,
    validate_question_variable_pairs,
)
from .analysis.generators import find_image_analysis_for_question
from .analysis.system_prompt import accept_image, build_user_message, create_system_prompt
from .llm_client import LLMClient
from .website_context import WebsiteContextFetcher

logger = logging.getLogger(__name__)


class AnalysisState(TypedDict, total=False):
    """State passed between the analysis nodes."""

    request: AnalyzePromptRequest
    context: str
    image_url: Optional[str]
    model: str
    reply: Optional[Dict[str, Any]]
    usage: Dict[str, int]
    error: Optional[str]
    questions: List[Question]
    variables: List[Variable]
    master_command: str
    enhanced_prompt: str
    ambiguity: float
    source: str


def _reply_questions(reply: Dict[str, Any]) -> List[Question]:
    questions = []
    for item in reply.get("questions") or []:
        if isinstance(item, str):
            item = {"text": item}
        if not isinstance(item, dict) or not item.get("text"):
            continue
        questions.append(
            Question(
                id=f"q-{len(questions) + 1}",
                text=str(item["text"]),
                answer=str(item.get("answer") or ""),
                category=str(item.get("category") or "Other"),
                examples=[str(e) for e in item.get("examples") or [] if e],
            )
        )
    return questions


def _reply_variables(reply: Dict[str, Any]) -> List[Variable]:
    variables = []
    for item in reply.get("variables") or []:
        if not isinstance(item, dict) or not item.get("name"):
            continue
        index = len(variables) + 1
        variables.append(
            Variable(
                id=f"v-{index}",
                name=str(item["name"]),
                value=str(item.get("value") or ""),
                category=str(item.get("category") or "Other"),
                code=f"VAR_{index}",
            )
        )
    return variables


def _image_analysis(reply: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
    analysis = (reply or {}).get("imageAnalysis")
    if not isinstance(analysis, dict):
        return None
    return {str(k): str(v) for k, v in analysis.items() if v}


class PromptAnalysisGraph:
    """
    gather_context -> call_model -> (finalize | apply_heuristics -> finalize)

    The heuristic branch runs when the model is unavailable, times out,
    or replies with something that is not a JSON object with questions.
    """

    def __init__(self, llm_client: LLMClient, website_fetcher: Optional[WebsiteContextFetcher] = None):
        self.llm_client = llm_client
        self.website_fetcher = website_fetcher or WebsiteContextFetcher()
        self.graph = self.create_graph()

    async def gather_context(self, state: AnalysisState) -> Dict[str, Any]:
        request = state["request"]
        sections = []

        if request.website_data and request.website_data.url:
            text = await self.website_fetcher.fetch_text(request.website_data.url)
            if text:
                section = f"WEBSITE CONTENT ({request.website_data.url}):\n{text}"
                if request.website_data.instructions:
                    section += f"\nUSAGE INSTRUCTIONS: {request.website_data.instructions}"
                sections.append(section)

        smart_context = request.smart_context
        if smart_context and smart_context.context.strip():
            section = f"SMART CONTEXT:\n{smart_context.context.strip()}"
            if smart_context.usage_instructions:
                section += f"\nUSAGE INSTRUCTIONS: {smart_context.usage_instructions}"
            sections.append(section)

        image_url = accept_image(request.image_data.base64) if request.image_data else None
        return {"context": "\n\n".join(sections), "image_url": image_url}

    async def call_model(self, state: AnalysisState) -> Dict[str, Any]:
        request = state["request"]
        pillars = request.template.pillars if request.template else []
        model = request.model or settings.analysis_model

        system_prompt = create_system_prompt(
            request.primary_toggle,
            request.secondary_toggle,
            [p.title for p in pillars] or None,
        )
        user_message = build_user_message(
            request.prompt_text, state.get("context", ""), state.get("image_url")
        )

        try:
            result = await self.llm_client.complete(
                system_prompt, user_message, model, temperature=0.0, max_tokens=1200
            )
        except LLMError as e:
            logger.warning(f"Prompt analysis falling back to heuristics: {e}")
            return {"reply": None, "error": str(e), "model": model}

        reply = parse_json_reply(result.content)
        if not isinstance(reply, dict):
            logger.warning(f"Invalid JSON from OpenAI: {result.content[:200]}")
            return {
                "reply": None,
                "error": "Invalid response from model",
                "model": result.model,
                "usage": result.usage,
            }
        return {"reply": reply, "model": result.model, "usage": result.usage}

    def route_reply(self, state: AnalysisState) -> str:
        reply = state.get("reply")
        if reply and _reply_questions(reply):
            return "finalize"
        return "heuristics"

    async def apply_heuristics(self, state: AnalysisState) -> Dict[str, Any]:
        request = state["request"]
        reply = state.get("reply") or {}
        pillars = request.template.pillars if request.template else []
        image_analysis = _image_analysis(reply)

        questions = generate_context_questions(
            request.prompt_text, pillars, image_analysis, request.user_intent or ""
        )
        variables = generate_contextual_variables(
            request.prompt_text,
            pillars,
            image_analysis,
            simple=request.secondary_toggle == "token",
        )
        return {"questions": questions, "variables": variables, "source": "heuristic"}

    async def finalize(self, state: AnalysisState) -> Dict[str, Any]:
        request = state["request"]
        reply = state.get("reply") or {}
        from_model = state.get("source") != "heuristic"

        if from_model:
            questions = _reply_questions(reply)
            variables = _reply_variables(reply) or generate_contextual_variables(
                request.prompt_text, request.template.pillars if request.template else []
            )
            image_analysis = _image_analysis(reply)
            if image_analysis:
                for question in questions:
                    if question.answer:
                        continue
                    relevant = find_image_analysis_for_question(
                        question, image_analysis, request.user_intent or ""
                    )
                    if relevant:
                        question.answer = f"Based on image analysis: {relevant}"
                        question.prefill_source = "image"
        else:
            questions = state["questions"]
            variables = state["variables"]

        for question in questions:
            question.text = append_examples(sanitize_question_text(question.text), question.examples)

        if from_model:
            # Model questions must not just ask for a variable's value
            valid = [q for q in questions if validate_question_variable_pairs([q], variables)]
            if valid:
                questions = valid
            else:
                logger.warning("Every model question failed validation, keeping them unfiltered")

        ambiguity = compute_ambiguity(request.prompt_text)
        return {
            "questions": organize_questions_by_pillar(questions, ambiguity),
            "variables": variables,
            "master_command": str(reply.get("masterCommand") or ""),
            "enhanced_prompt": str(reply.get("enhancedPrompt") or ""),
            "ambiguity": ambiguity,
            "source": "ai" if from_model else "heuristic",
        }

    def create_graph(self):
        """Build and compile the analysis state machine."""
        workflow = StateGraph(AnalysisState)

        workflow.add_node("gather_context", self.gather_context)
        workflow.add_node("call_model", self.call_model)
        workflow.add_node("apply_heuristics", self.apply_heuristics)
        workflow.add_node("finalize", self.finalize)

        workflow.set_entry_point("gather_context")
        workflow.add_edge("gather_context", "call_model")
        workflow.add_conditional_edges(
            "call_model",
            self.route_reply,
            {"finalize": "finalize", "heuristics": "apply_heuristics"},
        )
        workflow.add_edge("apply_heuristics", "finalize")
        workflow.add_edge("finalize", END)

        return workflow.compile()

    async def run(self, request: AnalyzePromptRequest) -> Dict[str, Any]:
        """Run the graph and return the final state."""
        return await self.graph.ainvoke({"request": request})


def state_to_response_fields(state: Dict[str, Any]) -> Dict[str, Any]:
    """Pick the response fields out of a final analysis state."""
    return {
        "questions": state.get("questions", []),
        "variables": state.get("variables", []),
        "master_command": state.get("master_command", ""),
        "enhanced_prompt": state.get("enhanced_prompt", ""),
        "ambiguity": state.get("ambiguity", 1.0),
        "source": state.get("source", "heuristic"),
        "usage": Usage(**(state.get("usage") or {})),
        "error": state.get("error"),
    }
