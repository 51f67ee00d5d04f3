"""
Attempt read models: the attempt summary, the post-submission review and a
student's attempt history. Nothing here writes.
"""
import random

from django.utils import timezone

from quizzes.exceptions import AttemptNotSubmitted, ReviewNotAllowed
from quizzes.permissions import can_grade
from .aggregator import ScoreAggregator
from .timer import TimerController


def format_duration(seconds):
    """1h 2m 3s, 2m 3s or 3s."""
    seconds = max(0, int(seconds or 0))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


# =============================================================================
# PRESENTATION ORDER
# =============================================================================

def ordered_questions(attempt):
    """
    The attempt's questions in presentation order. Shuffling is seeded by the
    attempt id, so one attempt always sees the same order.
    """
    questions = list(attempt.quiz.questions.prefetch_related('options', 'blanks'))
    if attempt.quiz.shuffle_questions:
        random.Random(attempt.pk).shuffle(questions)
    return questions


def ordered_options(attempt, question):
    options = list(question.options.all())
    if attempt.quiz.shuffle_answers:
        random.Random(f"{attempt.pk}:{question.pk}").shuffle(options)
    return options


def scores_visible(attempt, user=None):
    """Students see per-answer scores once graded, or right away when the quiz allows it."""
    if user is not None and can_grade(user, attempt.quiz):
        return True
    if attempt.is_in_progress:
        return False
    return attempt.quiz.show_results_immediately or attempt.status == attempt.Status.GRADED


# =============================================================================
# SUMMARY
# =============================================================================

def get_attempt_summary(attempt, now=None, user=None):
    """
    Full read model of one attempt: per-question, time, score and grading
    breakdowns. When `user` may not see scores yet, points and correctness
    are withheld.
    """
    now = now or timezone.now()
    quiz = attempt.quiz
    answers = {
        a.question_id: a
        for a in attempt.answers.select_related('question')
    }
    questions = list(quiz.questions.all())

    question_breakdown = []
    correct = incorrect = pending = unanswered = 0
    for question in questions:
        answer = answers.get(question.id)
        entry = {
            'question_id': question.id,
            'question_type': question.question_type,
            'order': question.order,
            'points': float(question.points),
            'is_answered': answer is not None,
            'points_earned': None,
            'is_correct': None,
            'is_pending': False,
            'grading_method': None,
            'time_spent_seconds': 0,
            'answered_at': None,
        }
        if answer is None:
            unanswered += 1
        else:
            entry.update({
                'points_earned': float(answer.points_earned) if answer.points_earned is not None else None,
                'is_correct': answer.is_correct,
                'is_pending': answer.is_pending,
                'grading_method': answer.grading_method or None,
                'time_spent_seconds': answer.time_spent_seconds,
                'answered_at': answer.answered_at,
            })
            if answer.is_pending:
                pending += 1
            elif answer.is_correct:
                correct += 1
            else:
                incorrect += 1
        question_breakdown.append(entry)

    if attempt.is_in_progress:
        total_seconds = max(0, int((now - attempt.started_at).total_seconds()))
    else:
        total_seconds = attempt.time_spent_seconds or 0

    snapshot = ScoreAggregator.compute(quiz, [a.points_earned for a in answers.values()])
    is_provisional = attempt.is_in_progress or snapshot.is_provisional

    summary = {
        'attempt_id': attempt.id,
        'quiz_id': quiz.id,
        'quiz_title': quiz.title,
        'student_id': attempt.student_id,
        'attempt_number': attempt.attempt_number,
        'status': attempt.status,
        'started_at': attempt.started_at,
        'deadline': attempt.deadline,
        'submitted_at': attempt.submitted_at,
        'graded_at': attempt.graded_at,
        'time_remaining_seconds': TimerController.time_remaining_seconds(attempt, now),
        'question_breakdown': question_breakdown,
        'time_breakdown': {
            'total_seconds': total_seconds,
            'total_minutes': round(total_seconds / 60, 2),
            'average_per_question': round(total_seconds / len(questions), 2) if questions else 0,
            'formatted_duration': format_duration(total_seconds),
        },
        'score_breakdown': {
            'total_points': float(snapshot.total_points),
            'earned_points': float(snapshot.earned_points),
            'percentage': float(snapshot.percentage),
            'passing_score': float(quiz.passing_score) if quiz.passing_score is not None else None,
            'is_passed': snapshot.is_passed,
            'correct_count': correct,
            'incorrect_count': incorrect,
            'ungraded_count': pending,
            'unanswered_count': unanswered,
        },
        'grading_status': {
            'is_fully_graded': attempt.status == attempt.Status.GRADED,
            'pending_grading_count': snapshot.pending_grading_count,
            'is_provisional': is_provisional,
        },
    }
    if user is not None and not scores_visible(attempt, user):
        _withhold_scores(summary)
    return summary


def _withhold_scores(summary):
    for entry in summary['question_breakdown']:
        entry['points_earned'] = None
        entry['is_correct'] = None
    summary['score_breakdown'].update({
        'earned_points': None,
        'percentage': None,
        'is_passed': None,
        'correct_count': None,
        'incorrect_count': None,
    })


# =============================================================================
# REVIEW
# =============================================================================

def build_review(attempt, user):
    """
    What a user may see of a submitted attempt: their answers, plus scores,
    feedback and correct answers as the quiz's disclosure settings allow.
    Graders always see everything.
    """
    quiz = attempt.quiz
    grader = can_grade(user, quiz)

    if attempt.is_in_progress:
        raise AttemptNotSubmitted("Review is available after the attempt is submitted.")
    if not grader and not quiz.allow_review:
        raise ReviewNotAllowed()

    show_scores = scores_visible(attempt, user)
    show_correct = grader or quiz.show_correct_answers
    show_feedback = grader or quiz.show_feedback

    answers = {a.question_id: a for a in attempt.answers.all()}
    questions = []
    for question in ordered_questions(attempt):
        answer = answers.get(question.id)
        item = {
            'question_id': question.id,
            'question_type': question.question_type,
            'text': question.text,
            'points': float(question.points),
            'options': [
                _review_option(option, show_correct)
                for option in ordered_options(attempt, question)
            ],
            'answer_data': answer.answer_data if answer else None,
        }
        if show_scores:
            item['points_earned'] = (
                float(answer.points_earned) if answer and answer.points_earned is not None else None
            )
            item['is_correct'] = answer.is_correct if answer else None
        if show_feedback:
            item['feedback'] = answer.grader_feedback if answer else None
        if show_correct:
            item['explanation'] = question.explanation
            item['correct_answers'] = [
                {'answer_text': c.answer_text, 'blank_id': c.blank_id}
                for c in question.correct_answers.all()
            ]
        questions.append(item)

    review = {
        'attempt_id': attempt.id,
        'quiz_id': quiz.id,
        'quiz_title': quiz.title,
        'status': attempt.status,
        'submitted_at': attempt.submitted_at,
        'questions': questions,
    }
    if show_scores:
        snapshot = ScoreAggregator.snapshot(attempt)
        review['score'] = snapshot.as_dict()
    return review


def _review_option(option, show_correct):
    data = {'id': option.id, 'text': option.text, 'blank_id': option.blank_id}
    if show_correct:
        data['is_correct'] = option.is_correct
    return data


# =============================================================================
# HISTORY
# =============================================================================

def attempt_history(quiz, student):
    """A student's attempts on a quiz, newest first."""
    from quizzes.models import QuizAttempt

    return QuizAttempt.objects.filter(quiz=quiz, student=student).select_related('quiz').order_by('-attempt_number')
