from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FaqEntry:
    """
    A question/answer entry from the FAQ database.

    Card references inside question and answer are inlined as ``{{name|cardId}}``.

    Attributes:
        faq_id: Site FAQ id
        question: Question text (never empty)
        answer: Answer text, empty when the page has none
        updated_at: Last update date as printed (e.g. "2024/01/15"), lexically comparable
    """

    faq_id: str
    question: str
    answer: str = ""
    updated_at: str | None = None
