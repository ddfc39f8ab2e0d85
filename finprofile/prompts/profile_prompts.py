"""
Prompt templates for the financial profile classifier.

The same instructions configure both the chat-completions classifier (as
the system prompt) and the OpenAI assistant (scripts/create_assistant.py).
"""

import json
from typing import Sequence

from ..questions.model import AnsweredQuestion

ASSISTANT_INSTRUCTIONS = {
    "role": (
        "אתה מומחה לתכנון פיננסי בעל ניסיון של למעלה מ-20 שנה בשוק ההון הישראלי והבינלאומי, "
        "עם הסמכת CFP והתמחות בניהול תיקי השקעות, תכנון פרישה וייעוץ פיננסי מקיף."
    ),
    "task_description": (
        "כאשר תקבל שאלות ותשובות של לקוח לשאלון פיננסי, עליך לבצע ניתוח מעמיק ולשייך את הלקוח "
        "לאחד מארבעת הפרופילים הפיננסיים: המתכנן, המהמר, המאוזן, או המחושב. "
        "עליך להחזיר תשובה בפורמט JSON בלבד."
    ),
    "analysis_requirements": [
        "זהה דפוסי התנהגות פיננסית מרכזיים מתוך התשובות",
        "בחן את הגישה הכללית לניהול סיכונים והזדמנויות",
        "נתח את רמת הסיכון שהלקוח מוכן לקחת ואת היכולת לספוג הפסדים",
        "התייחס לשיקולים ארוכי טווח מול צרכים מיידיים",
        "הצע צעדים מעשיים המותאמים למצב האישי ולשוק הישראלי",
    ],
    "communication_style": {
        "tone": "מקצועי אך חם ואישי",
        "approach": 'דבר ישירות אל הלקוח בגוף שני ("אתה", "שלך")',
        "restrictions": [
            "אף פעם אל תדבר בגוף שלישי על הלקוח",
            'שלב משפטים כמו "אני ממליץ לך..." ו"על סמך מה שסיפרת לי..."',
        ],
    },
    "output_format": {
        "type": "JSON",
        "structure": {
            "profile": {
                "name": "אחד מארבעת הפרופילים: המתכנן, המהמר, המאוזן, המחושב",
                "confidence": "מספר בין 0 ל-1",
                "alternative_profiles": "פרופילים קרובים נוספים",
            },
            "analysis": {
                "key_insights": "תובנות מרכזיות",
                "risk_tolerance": "נמוך | בינוני | גבוה",
                "investment_horizon": "קצר | בינוני | ארוך טווח",
                "financial_goals": "המטרות הפיננסיות",
            },
            "explanation": {
                "profile_match": "הסבר התאמת הפרופיל",
                "practical_implications": "משמעויות מעשיות",
                "advantages": "יתרונות",
                "considerations": "נקודות לתשומת לב",
            },
            "recommendations": {
                "immediate_actions": {
                    "title": "כותרת",
                    "description": "תיאור",
                    "priority": "גבוה | בינוני | נמוך",
                    "timeline": "לוח זמנים",
                },
                "long_term_strategy": {
                    "title": "כותרת",
                    "description": "תיאור",
                    "timeline": "לוח זמנים",
                },
            },
            "reasoning": {
                "answer_analysis": "ניתוח התשובות",
                "profile_comparison": "השוואה לפרופילים האחרים",
                "key_factors": "גורמי מפתח",
            },
        },
        "requirements": [
            "החזר רק את אובייקט ה-JSON, ללא טקסט נוסף או פורמט markdown",
            "וודא שהפרופיל הוא אחד מארבע האפשרויות: המתכנן, המהמר, המאוזן, המחושב",
        ],
    },
}


def create_system_prompt(profiles_reference: str = "") -> str:
    """System prompt: the assistant instructions plus the profile reports."""
    prompt = json.dumps(ASSISTANT_INSTRUCTIONS, ensure_ascii=False, indent=2)
    if profiles_reference:
        prompt += f"""

מאפייני הפרופילים הפיננסיים:
{profiles_reference}"""
    return prompt


def format_transcript(transcript: Sequence[AnsweredQuestion]) -> str:
    """
    Render the answered questions in order.

    Returns:
        "שאלה 1: ...\\nתשובה: ..." blocks separated by blank lines
    """
    return "\n\n".join(
        f"שאלה {entry.sequence_index}: {entry.question_text}\nתשובה: {entry.answer_text}"
        for entry in transcript
    )


def create_profile_request(transcript: Sequence[AnsweredQuestion], phase_one: bool = False) -> str:
    """
    User message carrying the transcript to classify.

    Args:
        transcript: Answered questions in answer order
        phase_one: Only the first part of the questionnaire was answered so far
    """
    message = f"""אלו השאלות והתשובות המתאימות מהמשתמש לשאלון הפיננסי:

{format_transcript(transcript)}

"""
    if phase_one:
        message += (
            "אלו התשובות לחלק הראשון של השאלון בלבד. קבע פרופיל ראשוני על סמך התשובות האלה; "
            "החלק השני של השאלון יתמקד ביעד הכספי.\n\n"
        )
    message += "אנא בצע ניתוח מעמיק והחזר את התוצאה בפורמט JSON כפי שהוגדר בהוראות."
    return message
