"""
Progress and scoring arithmetic

Pure helpers shared by the enrollment and quiz engines. Percentages are
rounded half-up so that 1/8 reports 13 rather than Python's banker's 12.
"""
from typing import List, Dict, Any, Sequence


def percent(part: int, total: int) -> int:
    """
    Integer percentage of part over total, rounded half-up.

    Returns 0 when total is 0.
    """
    if total <= 0:
        return 0
    return (200 * part + total) // (2 * total)


def compute_progress(completed_count: int, total_lessons: int) -> int:
    """Course progress: round(100 * completed / total), 0 for an empty syllabus"""
    return percent(completed_count, total_lessons)


def should_complete(progress: int, status: str) -> bool:
    """Only active enrollments move to completed, and only at 100%"""
    return progress == 100 and status == "active"


def grade_answers(questions: Sequence[Dict[str, Any]], answers: Sequence[int]) -> Dict[str, Any]:
    """
    Auto-grade a quiz attempt.

    Args:
        questions: Ordered quiz questions, each with a correct_index
        answers: Selected option index per question, same length as questions

    Returns:
        Dict with score, total_questions, correct_answers and the
        per-question answers breakdown

    Raises:
        ValueError: If the answer count differs from the question count
    """
    total_questions = len(questions)
    if len(answers) != total_questions:
        raise ValueError("Answers length does not match number of questions")

    breakdown: List[Dict[str, Any]] = []
    correct_answers = 0
    for index, (question, selected) in enumerate(zip(questions, answers)):
        is_correct = selected == question["correct_index"]
        if is_correct:
            correct_answers += 1
        breakdown.append({
            "question_index": index,
            "selected_index": selected,
            "correct_index": question["correct_index"],
            "is_correct": is_correct,
        })

    return {
        "score": percent(correct_answers, total_questions),
        "total_questions": total_questions,
        "correct_answers": correct_answers,
        "answers": breakdown,
    }
