import json
import logging
import re

import google.generativeai as genai
from flask import current_app

from errors import AIServiceError
from models.quiz import QUESTION_TYPES
from services.updates import whole_number

logger = logging.getLogger(__name__)

_configured_key = None

ASSISTANT_PROMPT = (
    "You are an AI study assistant for an online learning platform. Your role is to:\n"
    "1. Help students understand concepts clearly\n"
    "2. Provide explanations in a friendly, encouraging manner\n"
    "3. Break down complex topics into simpler parts\n"
    "4. Ask clarifying questions when needed\n"
    "5. Provide examples and analogies to aid understanding\n"
    "Be concise but thorough. If you don't know something, admit it rather than guessing."
)


# ---------- Gemini helpers ----------
def _configure():
    global _configured_key
    api_key = current_app.config.get("GEMINI_API_KEY")
    if not api_key:
        raise AIServiceError("AI API key is not configured. Set GEMINI_API_KEY in your .env file.",
                             status_code=503)
    if api_key != _configured_key:
        genai.configure(api_key=api_key)
        _configured_key = api_key


def build_gemini_model(system_prompt: str, max_output_tokens: int = 600, temperature: float = 0.6,
                       response_mime_type: str = None):
    _configure()
    cfg = {"temperature": temperature, "max_output_tokens": max_output_tokens}
    if response_mime_type:
        cfg["response_mime_type"] = response_mime_type
    return genai.GenerativeModel(
        model_name=current_app.config["GEMINI_MODEL"],
        system_instruction=system_prompt,
        generation_config=cfg,
    )


def to_gemini_history(history):
    converted = []
    for msg in history:
        role = msg.get("role")
        content = msg.get("content", "")
        if not content:
            continue
        converted.append({
            "role": "model" if role == "assistant" else "user",
            "parts": [content],
        })
    return converted


def strip_fences(s: str) -> str:
    s = s.strip()
    s = re.sub(r"^\s*```(?:json)?\s*", "", s, flags=re.IGNORECASE)
    s = re.sub(r"\s*```\s*$", "", s)
    return s.strip()


def extract_first_object(s: str):
    start = s.find("{")
    if start == -1:
        return None
    depth = 0
    for i in range(start, len(s)):
        ch = s[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return s[start:i + 1]
    return None


def try_load_json(raw: str):
    cleaned = strip_fences(raw)
    obj = extract_first_object(cleaned) or cleaned
    obj = re.sub(r",(\s*[}\]])", r"\1", obj)
    return json.loads(obj)


def _service_error(exc: Exception, action: str) -> AIServiceError:
    msg = str(exc)
    lowered = msg.lower()
    if "429" in msg or "quota" in lowered or "rate limit" in lowered:
        return AIServiceError("AI API rate limit exceeded. Please try again later.", status_code=429)
    if "api key" in lowered or "401" in msg or "403" in msg:
        return AIServiceError("AI API key is invalid or lacks access. Please check your configuration.")
    return AIServiceError(f"Failed to {action}. Please try again later.")


def _generate_text(system_prompt: str, prompt: str, action: str, **model_kwargs) -> str:
    try:
        model = build_gemini_model(system_prompt, **model_kwargs)
        resp = model.generate_content(prompt)
        return (getattr(resp, "text", None) or "").strip()
    except AIServiceError:
        raise
    except Exception as e:
        logger.exception("Unable to %s", action)
        raise _service_error(e, action)


def _generate_json(system_prompt: str, prompt: str, action: str, **model_kwargs) -> dict:
    raw = _generate_text(system_prompt, prompt, action, response_mime_type="application/json", **model_kwargs)
    try:
        payload = try_load_json(raw)
    except (TypeError, ValueError) as je:
        logger.warning("AI JSON parse failed: %s\nRaw: %s", je, raw[:1000])
        raise AIServiceError("Invalid response format from AI service")
    if not isinstance(payload, dict):
        raise AIServiceError("Invalid response format from AI service")
    return payload


# ---------- Study assistant ----------
def get_study_assistant_response(message: str, course_context: str = None, history=()) -> str:
    system_prompt = ASSISTANT_PROMPT
    if course_context:
        system_prompt += f"\n\nCurrent course context: {course_context}"
    try:
        model = build_gemini_model(system_prompt, max_output_tokens=500, temperature=0.7)
        chat = model.start_chat(history=to_gemini_history(list(history)[-10:]))
        resp = chat.send_message(message)
        answer = (getattr(resp, "text", None) or "").strip()
    except AIServiceError:
        raise
    except Exception as e:
        logger.exception("Unable to get assistant response")
        raise _service_error(e, "get an assistant response")
    if not answer:
        raise AIServiceError("AI service returned an empty response")
    return answer


# ---------- Content generation ----------
def generate_course_outline(topic: str, difficulty: str = "beginner"):
    prompt = (
        f'Create a comprehensive course outline for "{topic}" at {difficulty} level.\n'
        'Return a JSON object with a "modules" array, where each module has:\n'
        "- title: Module title\n"
        "- description: Brief description\n"
        "- estimatedDuration: Duration in minutes\n"
        "- keyPoints: Array of 3-5 key learning points\n\n"
        'Format: {"modules": [{"title": "...", "description": "...", "estimatedDuration": 30, '
        '"keyPoints": ["...", "..."]}]}'
    )
    payload = _generate_json("You are an expert course designer. Return only valid JSON.", prompt,
                             "generate course outline", max_output_tokens=2000, temperature=0.7)
    modules = payload.get("modules")
    if not isinstance(modules, list):
        logger.warning("Outline without modules list: %s", str(payload)[:300])
        raise AIServiceError("Invalid response format from AI service")
    return [m for m in modules if isinstance(m, dict) and m.get("title")]


def generate_module_content(module_title: str, description: str = "", key_points=()) -> str:
    prompt = (
        f'Create comprehensive, detailed, and engaging educational content for a course module titled '
        f'"{module_title}".\n\n'
        f"Description: {description}\n"
        f"Key Points to Cover: {', '.join(key_points)}\n\n"
        "Cover: an introduction that sets context, detailed explanations of core concepts, "
        "worked examples and real-world use cases, and a summary with key takeaways.\n"
        "Format the content using Markdown with proper headings (##, ###), bullet points and code "
        "blocks where applicable."
    )
    system_prompt = ("You are an expert educator and curriculum designer. Create thorough, in-depth "
                     "educational content with extensive explanations and examples.")
    content = _generate_text(system_prompt, prompt, "generate module content",
                             max_output_tokens=4000, temperature=0.7)
    if not content:
        raise AIServiceError("AI service returned an empty response")
    return content


def _normalize_question(q):
    if not isinstance(q, dict):
        return None
    text = str(q.get("question") or "").strip()
    answer = q.get("correctAnswer", q.get("correct_answer"))
    if not text or answer is None or not str(answer).strip():
        return None
    qtype = q.get("type") if q.get("type") in QUESTION_TYPES else "multiple_choice"
    options = q.get("options") if isinstance(q.get("options"), list) else []
    points = whole_number(q.get("points", 1))
    points = 1 if points is None else max(0, points)
    return {
        "question": text,
        "type": qtype,
        "options": [str(o) for o in options],
        "correctAnswer": str(answer).strip(),
        "explanation": q.get("explanation"),
        "points": points,
    }


def generate_quiz_questions(topic: str, difficulty: str = "beginner", num_questions: int = 5):
    prompt = (
        f'Generate {num_questions} quiz questions about "{topic}" at {difficulty} level.\n'
        "Return JSON format:\n"
        '{ "questions": [ { "question": "Question text", "type": "multiple_choice", '
        '"options": ["Option A", "Option B", "Option C", "Option D"], "correctAnswer": "Option A", '
        '"explanation": "Why this is correct" } ] }\n'
        "correctAnswer must repeat the exact text of the correct option."
    )
    payload = _generate_json("You are an expert quiz creator. Return only valid JSON.", prompt,
                             "generate quiz questions", max_output_tokens=2000, temperature=0.8)
    questions = [q for q in map(_normalize_question, payload.get("questions") or []) if q]
    if not questions:
        raise AIServiceError("AI service returned no usable questions")
    return questions[:num_questions]


def generate_flashcards(content: str, num_cards: int = 5):
    prompt = (
        f"Generate {num_cards} flashcards from the following content. Each flashcard should have:\n"
        "- front: A question or key term\n"
        "- back: A clear, concise answer or definition\n\n"
        f"Content: {content[:2000]}\n\n"
        'Return JSON: { "flashcards": [ {"front": "...", "back": "..."} ] }'
    )
    payload = _generate_json("You are an expert at creating educational flashcards. Return only valid JSON.",
                             prompt, "generate flashcards", max_output_tokens=1400, temperature=0.7)
    cards = []
    for card in payload.get("flashcards") or []:
        if not isinstance(card, dict):
            continue
        front = str(card.get("front") or "").strip()
        back = str(card.get("back") or "").strip()
        if front and back:
            cards.append({"front": front, "back": back})
    if not cards:
        raise AIServiceError("AI service returned no usable flashcards")
    return cards[:num_cards]
