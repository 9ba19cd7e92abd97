"""Prompt text for the three model flows.

Each flow gets a fixed system message plus a user prompt built from the
request; the language line is appended only when a hint is given.
"""

from typing import Optional

LANGUAGE_NAMES = {"en": "English", "mr": "Marathi"}

DETECT_SYSTEM = (
    "You are an AI assistant specialized in identifying objects within images, "
    "with a strong focus on recognizing medicines and medical products. "
    'Reply with a JSON object: {"object_name": string, "contextual_clues": string}.'
)

DETECT_PROMPT = (
    "Analyze the provided image.\n"
    "1. Identify the primary object. If it appears to be a medicine (tablets, capsules, "
    "syrup bottle, ointment tube, inhaler, medical packaging), prioritize identifying it as such.\n"
    "2. If there is legible text on the object or its packaging that looks like a product "
    "or medicine name, extract it and use it as object_name. If no name can be read, name "
    'the type of packaging or form (e.g. "blister pack", "syrup bottle").\n'
    "3. Give brief contextual clues about the object or its form "
    '(e.g. "blister pack of tablets", "bottle of liquid medicine").'
)

DESCRIBE_SYSTEM = (
    "You are a helpful product copywriter. Write an informative, engaging description "
    "of the named product in two or three short paragraphs. "
    'Reply with a JSON object: {"description": string}.'
)

MEDICINE_SYSTEM = (
    "You are a helpful AI assistant providing general information about medicines. "
    "Frame every answer as general information. Do not provide specific dosage "
    "information or individual treatment plans. "
    'Reply with a JSON object: {"medicine_name": string, "usage": string, '
    '"how_to_use": string, "common_brands": string, "precautions": string, '
    '"disclaimer": string}.'
)

MEDICINE_PROMPT = (
    "Given the medicine name: {name}, provide:\n"
    "1. usage: a comprehensive description of what this medicine is typically used for.\n"
    "2. how_to_use: general guidance on how it is typically taken or administered "
    "(e.g. 'usually taken with water', 'applied to the affected area as directed'), "
    "NOT specific dosage instructions.\n"
    "3. common_brands: common brand names, or state that none apply.\n"
    "4. precautions: brief, general precautions.\n"
    "5. disclaimer: state that this information is not a substitute for professional "
    "medical advice and that users should consult a healthcare provider."
)


def language_line(language: Optional[str], scope: str = "the whole response") -> str:
    if not language:
        return ""
    name = LANGUAGE_NAMES.get(language, language)
    return f"\nRespond in {name} ({language}). Ensure {scope} is in {name}."


def detect_prompt(language: Optional[str] = None) -> str:
    return DETECT_PROMPT + language_line(language, "the object name and contextual clues")


def describe_prompt(name: str, context_clues: Optional[str] = None, language: Optional[str] = None) -> str:
    prompt = f"Product name: {name}"
    if context_clues:
        prompt += f"\nContext clues: {context_clues}"
    return prompt + language_line(language)


def medicine_prompt(name: str, language: Optional[str] = None) -> str:
    return MEDICINE_PROMPT.format(name=name) + language_line(
        language, "the entire response, including the disclaimer,"
    )
