from typing import Dict, List, Optional, TypedDict
from langgraph.graph import StateGraph, END

from talentrank.helpers.prompts import QUESTIONS
from talentrank.models.models import CATEGORIES, CategorySignal
from talentrank.services.extraction import AIServices
from talentrank.utils.logging_config import get_logger

logger = get_logger(__name__)


# LangGraph state
class SignalState(TypedDict, total=False):
    text: str
    document_kind: str  # "cv" or "jd"
    position: str
    texts: Dict[str, str]
    embeddings: Dict[str, Optional[List[float]]]
    scores: Dict[str, Optional[float]]


class SignalPipeline:
    """Turns a CV or job description into one CategorySignal per category.

    extract -> embed -> score, each node walking the categories in order.
    Scores are only produced for CVs.
    """

    def __init__(self, services: AIServices):
        self.services = services
        self.graph = build_graph(self)

    def node_extract(self, state: SignalState):
        kind = state["document_kind"]
        questions = QUESTIONS[kind]
        texts = {}
        for category in CATEGORIES:
            texts[category] = self.services.extract_category(questions[category], state["text"], kind)
            if not texts[category]:
                logger.warning(f"Empty {category} extraction for {kind} ({state.get('position')})")
        return {"texts": texts}  # delta

    def node_embed(self, state: SignalState):
        texts = state.get("texts", {})
        return {"embeddings": {c: self.services.embed(texts.get(c, "")) for c in CATEGORIES}}

    def node_score(self, state: SignalState):
        if state["document_kind"] != "cv":
            return {"scores": {c: None for c in CATEGORIES}}
        texts = state.get("texts", {})
        return {
            "scores": {
                c: self.services.score_category(c, texts.get(c, ""), state["position"])
                for c in CATEGORIES
            }
        }

    def run(self, text: str, document_kind: str, position: str) -> Dict[str, CategorySignal]:
        out = self.graph.invoke({"text": text, "document_kind": document_kind, "position": position})
        texts = out.get("texts", {})
        embeddings = out.get("embeddings", {})
        scores = out.get("scores", {})
        return {
            c: CategorySignal(text=texts.get(c, ""), embedding=embeddings.get(c), score=scores.get(c))
            for c in CATEGORIES
        }


def build_graph(pipeline: SignalPipeline):
    g = StateGraph(SignalState)
    g.add_node("extract", pipeline.node_extract)
    g.add_node("embed", pipeline.node_embed)
    g.add_node("score", pipeline.node_score)
    g.set_entry_point("extract")
    g.add_edge("extract", "embed")
    g.add_edge("embed", "score")
    g.add_edge("score", END)
    return g.compile()
