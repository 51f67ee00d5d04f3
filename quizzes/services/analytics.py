"""
Quiz Analytics Service.
Statistics over the graded attempts of a quiz and the answers in them.
"""
from collections import Counter

import numpy as np

from quizzes.grading import QuestionType
from quizzes.grading.answer_data import as_option_id


class QuizAnalytics:
    def __init__(self, quiz):
        self.quiz = quiz

    def get_full_analytics(self):
        """Get comprehensive analytics for the quiz."""
        return {
            'quiz_info': self._get_quiz_info(),
            'overall_stats': self._get_overall_stats(),
            'question_analysis': self._get_question_analysis(),
            'score_distribution': self._get_score_distribution(),
            'time_analysis': self._get_time_analysis(),
        }

    def _graded_attempts(self):
        from quizzes.models import QuizAttempt

        return QuizAttempt.objects.filter(quiz=self.quiz, status=QuizAttempt.Status.GRADED)

    def _get_quiz_info(self):
        return {
            'id': self.quiz.id,
            'title': self.quiz.title,
            'total_points': float(self.quiz.total_points),
            'question_points': float(self.quiz.get_question_points()),
            'question_count': self.quiz.get_question_count(),
            'passing_score': float(self.quiz.passing_score) if self.quiz.passing_score is not None else None,
            'time_limit_minutes': self.quiz.time_limit_minutes,
        }

    def _get_overall_stats(self):
        attempts = self._graded_attempts()
        scores = [float(p) for p in attempts.values_list('percentage', flat=True) if p is not None]

        if not scores:
            return {'message': 'No graded attempts yet'}

        scores = np.array(scores)
        stats = {
            'total_attempts': int(scores.size),
            'unique_students': attempts.values('student').distinct().count(),
            'average_score': round(float(np.mean(scores)), 2),
            'median_score': round(float(np.median(scores)), 2),
            'std_deviation': round(float(np.std(scores)), 2),
            'highest_score': round(float(np.max(scores)), 2),
            'lowest_score': round(float(np.min(scores)), 2),
        }

        if self.quiz.passing_score is not None:
            pass_count = attempts.filter(is_passed=True).count()
            stats.update({
                'pass_count': pass_count,
                'fail_count': int(scores.size) - pass_count,
                'pass_rate': round((pass_count / scores.size) * 100, 2),
            })
        return stats

    def _get_question_analysis(self):
        """Analyze each question's performance metrics."""
        from quizzes.models import QuizAttempt, StudentAnswer

        analysis = []
        for question in self.quiz.questions.prefetch_related('options'):
            answers = StudentAnswer.objects.filter(
                question=question,
                attempt__status=QuizAttempt.Status.GRADED
            )
            points = [float(p) for p in answers.values_list('points_earned', flat=True) if p is not None]
            if not points:
                continue

            total = len(points)
            correct = answers.filter(is_correct=True).count()
            # Proportion of available points earned; handles partial credit.
            difficulty = float(np.mean(points)) / float(question.points) if question.points else 0
            discrimination = self._calculate_discrimination(question)

            choice_distribution = None
            if question.question_type in (QuestionType.SINGLE_CHOICE, QuestionType.MULTIPLE_CHOICE):
                choice_distribution = self._get_choice_distribution(question, answers)

            analysis.append({
                'question_id': question.id,
                'question_text': question.text[:100] + '...' if len(question.text) > 100 else question.text,
                'question_type': question.question_type,
                'max_points': float(question.points),
                'total_answers': total,
                'correct_count': correct,
                'incorrect_count': total - correct,
                'accuracy_rate': round((correct / total) * 100, 2),
                'average_points': round(float(np.mean(points)), 2),
                'difficulty_index': round(difficulty, 3),
                'difficulty_level': self._get_difficulty_level(difficulty),
                'discrimination_index': round(discrimination, 3),
                'choice_distribution': choice_distribution,
            })

        return sorted(analysis, key=lambda x: x['difficulty_index'])

    def _calculate_discrimination(self, question):
        """
        Upper-lower discrimination index: share of the top 27% of attempts that
        got the question right minus the share of the bottom 27%.
        """
        from quizzes.models import StudentAnswer

        attempt_ids = list(self._graded_attempts().order_by('-percentage', 'id').values_list('id', flat=True))
        n = len(attempt_ids)
        if n < 4:
            return 0

        group = max(1, int(n * 0.27))
        top_correct = StudentAnswer.objects.filter(
            question=question, attempt_id__in=attempt_ids[:group], is_correct=True
        ).count()
        bottom_correct = StudentAnswer.objects.filter(
            question=question, attempt_id__in=attempt_ids[n - group:], is_correct=True
        ).count()

        return max(-1, min(1, (top_correct - bottom_correct) / group))

    def _get_difficulty_level(self, index):
        if index >= 0.8:
            return 'Very Easy'
        elif index >= 0.6:
            return 'Easy'
        elif index >= 0.4:
            return 'Moderate'
        elif index >= 0.2:
            return 'Difficult'
        else:
            return 'Very Difficult'

    def _get_choice_distribution(self, question, answers):
        counts = Counter()
        for answer_data in answers.values_list('answer_data', flat=True):
            answer_data = answer_data or {}
            if question.question_type == QuestionType.SINGLE_CHOICE:
                selected = [answer_data.get('selected_option_id')]
            else:
                selected = answer_data.get('selected_option_ids') or []
            for value in selected:
                option_id = as_option_id(value)
                if option_id is not None:
                    counts[option_id] += 1

        total = sum(counts.values())
        return [
            {
                'option_id': option.id,
                'option_text': option.text,
                'is_correct': option.is_correct,
                'count': counts[option.id],
                'percentage': round((counts[option.id] / total) * 100, 2) if total > 0 else 0,
            }
            for option in question.options.all()
        ]

    def _get_score_distribution(self):
        """Get score distribution in ten-point ranges; 100% falls in the last range."""
        scores = [float(p) for p in self._graded_attempts().values_list('percentage', flat=True) if p is not None]
        edges = np.arange(0, 101, 10)
        counts, _ = np.histogram(scores, bins=edges)

        return [
            {'range': f'{low}-{low + 10}%', 'count': int(count)}
            for low, count in zip(edges[:-1].tolist(), counts.tolist())
        ]

    def _get_time_analysis(self):
        """Analyze completion time over graded attempts."""
        durations = [
            seconds / 60
            for seconds in self._graded_attempts().values_list('time_spent_seconds', flat=True)
            if seconds is not None
        ]
        if not durations:
            return {'message': 'No timing data available'}

        return {
            'average_duration_minutes': round(float(np.mean(durations)), 2),
            'median_duration_minutes': round(float(np.median(durations)), 2),
            'fastest_completion': round(min(durations), 2),
            'slowest_completion': round(max(durations), 2),
            'allowed_duration': self.quiz.time_limit_minutes,
        }
