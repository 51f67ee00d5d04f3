"""
API Views for the Quiz Assessment Engine.
Provides endpoints for taking quizzes, autosaving answers, submission, grading and results.
"""
from django.conf import settings
from django.db.models import Prefetch, Q
from django.shortcuts import get_object_or_404
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView
from drf_spectacular.utils import extend_schema, extend_schema_view, OpenApiExample, OpenApiResponse

from quizzes.exceptions import AttemptExpired
from quizzes.models import Quiz, QuizAttempt, StudentAnswer, AuditLog
from quizzes.permissions import IsOwnerOrAdmin, IsQuizGrader, CanModifyAttempt, can_grade, is_platform_admin
from quizzes.throttling import SubmissionRateThrottle, AutosaveRateThrottle, BurstRateThrottle
from quizzes.services import (
    AttemptManager, AnswerStore, GradingWorkflow, TimerController, QuizAnalytics,
    get_attempt_summary, build_review, attempt_history,
)
from .serializers import (
    QuizListSerializer, QuizDetailSerializer, AttemptListSerializer, AttemptDetailSerializer,
    AttemptQuestionsSerializer, StudentAnswerSerializer, AnswerSaveSerializer, AttemptSubmitSerializer,
    UngradedAnswerSerializer, GradeAnswerSerializer, BulkGradeSerializer,
)


def _get_client_ip(request):
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    return x_forwarded_for.split(',')[0].strip() if x_forwarded_for else request.META.get('REMOTE_ADDR')


# =============================================================================
# QUIZZES
# =============================================================================

@extend_schema_view(
    list=extend_schema(
        summary="List quizzes",
        description="""
List quizzes.

**Students** see published quizzes.
**Teachers** also see the quizzes they created.
**Admins** see everything.
"""
    ),
    retrieve=extend_schema(
        summary="Get quiz details",
        description="Quiz settings: time limit, attempt limit, passing score and disclosure options."
    )
)
@extend_schema(tags=['Quizzes'])
class QuizViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Quiz.objects.none()
    permission_classes = [IsAuthenticated]
    filterset_fields = ['is_published']
    search_fields = ['title', 'description']
    ordering_fields = ['created_at', 'title']

    def get_queryset(self):
        if getattr(self, 'swagger_fake_view', False):
            return Quiz.objects.none()

        queryset = Quiz.objects.select_related('created_by')
        user = self.request.user
        if not is_platform_admin(user):
            queryset = queryset.filter(Q(is_published=True) | Q(created_by=user))
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return QuizListSerializer
        return QuizDetailSerializer

    @extend_schema(
        summary="Start or resume an attempt",
        description="""
Start a new attempt, or get the in-progress one back.

**Validations:**
- Quiz must be published and inside its availability window
- Completed attempts must be below `max_attempts`

An in-progress attempt past its deadline is submitted first.

**Returns:** 201 with a new attempt, 200 when resuming.
""",
        request=None,
        responses={200: AttemptDetailSerializer, 201: AttemptDetailSerializer, 403: OpenApiResponse(description="Not available or limit reached")}
    )
    @action(detail=True, methods=['post'])
    def start(self, request, pk=None):
        quiz = self.get_object()
        attempt, created = AttemptManager.start_attempt(
            quiz,
            request.user,
            ip_address=_get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
        )

        if created:
            AuditLog.log(
                event_type=AuditLog.EventType.ATTEMPT_START,
                description=f"Started: {quiz.title} (Attempt {attempt.attempt_number})",
                request=request,
                user=request.user,
                metadata={'quiz_id': quiz.id, 'attempt_id': attempt.id}
            )
        else:
            AuditLog.log(
                event_type=AuditLog.EventType.ATTEMPT_RESUME,
                description=f"Resumed: {quiz.title} (Attempt {attempt.attempt_number})",
                request=request,
                user=request.user,
                metadata={'quiz_id': quiz.id, 'attempt_id': attempt.id}
            )

        return Response(
            AttemptDetailSerializer(attempt, context={'request': request}).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
        )

    @extend_schema(
        summary="My attempts on this quiz",
        description="The current user's attempts on the quiz, newest first.",
        responses={200: AttemptListSerializer(many=True)}
    )
    @action(detail=True, methods=['get'], url_path='my-attempts')
    def my_attempts(self, request, pk=None):
        quiz = self.get_object()
        attempts = attempt_history(quiz, request.user)
        return Response(AttemptListSerializer(attempts, many=True, context={'request': request}).data)

    @extend_schema(
        summary="Answers waiting for a grade",
        description="Answers on submitted attempts whose score is still pending. **Quiz owner or admin only.**",
        responses={200: UngradedAnswerSerializer(many=True)}
    )
    @action(detail=True, methods=['get'], permission_classes=[IsAuthenticated, IsQuizGrader])
    def ungraded(self, request, pk=None):
        quiz = self.get_object()
        limit = settings.QUIZ_ENGINE.get('UNGRADED_LIST_LIMIT', 200)
        answers = GradingWorkflow.list_ungraded(quiz)[:limit]
        return Response(UngradedAnswerSerializer(answers, many=True).data)

    @extend_schema(
        summary="Quiz analytics",
        description="""
Statistics over graded attempts.

**Includes:**
- Overall stats (mean, median, standard deviation, pass rate)
- Per-question difficulty and discrimination
- Option distribution for choice questions
- Score distribution and completion times

**Quiz owner or admin only.**
""",
        responses={200: dict}
    )
    @action(detail=True, methods=['get'], permission_classes=[IsAuthenticated, IsQuizGrader])
    def analytics(self, request, pk=None):
        quiz = self.get_object()
        return Response(QuizAnalytics(quiz).get_full_analytics())


# =============================================================================
# ATTEMPTS
# =============================================================================

@extend_schema_view(
    list=extend_schema(
        summary="List attempts",
        description="""
List quiz attempts.

**Students** see their own attempts.
**Teachers** also see attempts on quizzes they own.
"""
    ),
    retrieve=extend_schema(
        summary="Get attempt details",
        description="Attempt state, answers and time remaining. An attempt past its deadline is submitted on read."
    )
)
@extend_schema(tags=['Attempts'])
class AttemptViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = QuizAttempt.objects.none()
    permission_classes = [IsAuthenticated, IsOwnerOrAdmin]
    filterset_fields = ['quiz', 'status']
    ordering_fields = ['started_at', 'submitted_at', 'percentage']

    def get_queryset(self):
        if getattr(self, 'swagger_fake_view', False):
            return QuizAttempt.objects.none()

        queryset = QuizAttempt.objects.select_related('quiz', 'student').prefetch_related(
            Prefetch('answers', queryset=StudentAnswer.objects.select_related('question'))
        )
        user = self.request.user
        if not is_platform_admin(user):
            queryset = queryset.filter(Q(student=user) | Q(quiz__created_by=user))
        return queryset

    def get_serializer_class(self):
        if self.action == 'list':
            return AttemptListSerializer
        return AttemptDetailSerializer

    def retrieve(self, request, *args, **kwargs):
        attempt = self.get_object()
        current = TimerController.enforce_deadline(attempt)
        if current is not attempt:
            self._log_expiry(request, attempt)
            attempt = self.get_object()
        return Response(self.get_serializer(attempt).data)

    def _log_expiry(self, request, attempt):
        AuditLog.log(
            event_type=AuditLog.EventType.ATTEMPT_EXPIRED,
            description=f"Time limit reached: {attempt.quiz.title} (Attempt {attempt.attempt_number})",
            request=request,
            user=attempt.student,
            metadata={'attempt_id': attempt.id, 'deadline': attempt.deadline.isoformat()}
        )

    @extend_schema(
        summary="Question paper for this attempt",
        description="Questions and options in this attempt's presentation order. Correct answers are never included.",
        responses={200: AttemptQuestionsSerializer}
    )
    @action(detail=True, methods=['get'])
    def questions(self, request, pk=None):
        attempt = self.get_object()
        return Response(AttemptQuestionsSerializer(attempt).data)

    @extend_schema(
        summary="Autosave an answer",
        description="""
Save or replace the answer to one question. Safe to repeat: the latest save wins.

**answer_data** by question type:
- `SINGLE_CHOICE`: `{"selected_option_id": 12}`
- `MULTIPLE_CHOICE`: `{"selected_option_ids": [12, 14]}`
- `SHORT_ANSWER` / `ESSAY`: `{"answer_text": "..."}`
- `FILE_UPLOAD`: `{"file_path": "uploads/essay.pdf"}`
- `FILL_BLANK_TEXT`: `{"blanks": [{"blank_id": 1, "answer": "Paris"}]}`
- `FILL_BLANK_DROPDOWN`: `{"blanks": [{"blank_id": 1, "selected_option_id": 7}]}`

Saving at or after the deadline submits the attempt and fails with 409.
""",
        request=AnswerSaveSerializer,
        responses={200: StudentAnswerSerializer, 409: OpenApiResponse(description="Attempt submitted or expired")},
        examples=[
            OpenApiExample(
                'Request Example',
                value={"question_id": 3, "answer_data": {"selected_option_ids": [12, 14]}},
                request_only=True
            )
        ]
    )
    @action(
        detail=True, methods=['post'],
        permission_classes=[IsAuthenticated, CanModifyAttempt],
        throttle_classes=[AutosaveRateThrottle]
    )
    def answers(self, request, pk=None):
        attempt = self.get_object()
        serializer = AnswerSaveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            answer = AnswerStore.save_answer(
                attempt.pk,
                serializer.validated_data['question_id'],
                serializer.validated_data['answer_data'],
            )
        except AttemptExpired:
            self._log_expiry(request, attempt)
            raise

        return Response(StudentAnswerSerializer(answer).data)

    @extend_schema(
        summary="Submit attempt",
        description="""
Submit an in-progress attempt.

**Process:**
1. Saves the optional final batch of answers (dropped once the deadline has passed)
2. Fixes the submission time (server clock, bounded by the deadline)
3. Auto-grades objective questions
4. Computes the score; it stays provisional while answers wait for a teacher
""",
        request=AttemptSubmitSerializer,
        responses={200: AttemptDetailSerializer, 409: OpenApiResponse(description="Already submitted")},
        examples=[
            OpenApiExample(
                'Request Example',
                value={
                    "answers": [
                        {"question_id": 1, "answer_data": {"selected_option_id": 4}},
                        {"question_id": 2, "answer_data": {"answer_text": "Photosynthesis converts light..."}}
                    ]
                },
                request_only=True
            )
        ]
    )
    @action(
        detail=True, methods=['post'],
        permission_classes=[IsAuthenticated, CanModifyAttempt],
        throttle_classes=[SubmissionRateThrottle]
    )
    def submit(self, request, pk=None):
        attempt = self.get_object()
        serializer = AttemptSubmitSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        attempt = AttemptManager.force_submit(
            attempt.pk,
            answers=serializer.validated_data.get('answers'),
            client_submitted_at=serializer.validated_data.get('submitted_at'),
        )

        AuditLog.log(
            event_type=AuditLog.EventType.ATTEMPT_SUBMIT,
            description=f"Submitted: {attempt.quiz.title} (Attempt {attempt.attempt_number})",
            request=request,
            user=request.user,
            metadata={
                'quiz_id': attempt.quiz_id,
                'attempt_id': attempt.id,
                'status': attempt.status,
                'percentage': float(attempt.percentage) if attempt.percentage is not None else None,
            }
        )

        return Response(AttemptDetailSerializer(self.get_queryset().get(pk=attempt.pk), context={'request': request}).data)

    @extend_schema(
        summary="Attempt summary",
        description="""
Per-question breakdown, time breakdown, score breakdown and grading status.

While answers wait for manual grading the score is **provisional**.
""",
        responses={200: dict}
    )
    @action(detail=True, methods=['get'])
    def summary(self, request, pk=None):
        attempt = self.get_object()
        return Response(get_attempt_summary(attempt, user=request.user))

    @extend_schema(
        summary="Review a submitted attempt",
        description="""
Questions with the student's answers. Scores, feedback and correct answers are
shown as the quiz's `show_results_immediately`, `show_feedback` and
`show_correct_answers` settings allow.

Fails with 403 when the quiz disallows review and 409 while the attempt is in progress.
""",
        responses={200: dict, 403: OpenApiResponse(description="Review not allowed")}
    )
    @action(detail=True, methods=['get'])
    def review(self, request, pk=None):
        attempt = self.get_object()
        return Response(build_review(attempt, request.user))

    @extend_schema(
        summary="Re-grade attempt",
        description="Re-run automatic grading over the attempt with the current answer keys. Manual grades are kept. **Quiz owner or admin only.**",
        request=None,
        responses={200: AttemptDetailSerializer}
    )
    @action(detail=True, methods=['post'], permission_classes=[IsAuthenticated, IsQuizGrader])
    def regrade(self, request, pk=None):
        attempt = self.get_object()
        old_percentage = attempt.percentage
        attempt = GradingWorkflow.regrade_attempt(attempt.pk)

        AuditLog.log(
            event_type=AuditLog.EventType.ATTEMPT_REGRADED,
            description=f"Re-graded attempt {attempt.id}: {old_percentage}% -> {attempt.percentage}%",
            request=request,
            user=request.user,
            metadata={'attempt_id': attempt.id, 'quiz_id': attempt.quiz_id}
        )

        return Response(AttemptDetailSerializer(self.get_object(), context={'request': request}).data)


# =============================================================================
# GRADING
# =============================================================================

@extend_schema(tags=['Grading'])
class AnswerGradeView(APIView):
    """Manual grading of one answer."""
    permission_classes = [IsAuthenticated, IsQuizGrader]
    throttle_classes = [BurstRateThrottle]

    @extend_schema(
        summary="Grade an answer",
        description="Set points (0 to the question's points) and optional feedback. Replaces any earlier grade.",
        request=GradeAnswerSerializer,
        responses={200: dict, 400: OpenApiResponse(description="Score out of range"), 404: dict}
    )
    def patch(self, request, answer_id):
        answer = get_object_or_404(
            StudentAnswer.objects.select_related('attempt', 'attempt__quiz', 'question'),
            id=answer_id
        )
        self.check_object_permissions(request, answer)

        serializer = GradeAnswerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        old_points = answer.points_earned
        answer = GradingWorkflow.grade_answer(
            answer.id,
            serializer.validated_data['points_earned'],
            feedback=serializer.validated_data.get('feedback'),
            grader=request.user,
        )
        attempt = answer.attempt

        AuditLog.log(
            event_type=AuditLog.EventType.ANSWER_GRADED,
            description=f"Graded answer {answer.id}: {old_points} -> {answer.points_earned}",
            request=request,
            user=request.user,
            metadata={'answer_id': answer.id, 'attempt_id': attempt.id}
        )

        return Response({
            'answer_id': answer.id,
            'points_earned': float(answer.points_earned),
            'is_correct': answer.is_correct,
            'attempt_status': attempt.status,
            'attempt_earned_points': float(attempt.earned_points),
            'attempt_percentage': float(attempt.percentage),
            'is_passed': attempt.is_passed,
        })


@extend_schema(tags=['Grading'])
class BulkGradeView(APIView):
    """Grade several answers in one all-or-nothing request."""
    permission_classes = [IsAuthenticated]
    throttle_classes = [BurstRateThrottle]

    @extend_schema(
        summary="Grade answers in bulk",
        description="Every grade is applied or none is. **Quiz owner or admin only**, for every answer in the batch.",
        request=BulkGradeSerializer,
        responses={200: dict}
    )
    def post(self, request):
        serializer = BulkGradeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        grades = serializer.validated_data['grades']

        answer_ids = [g['answer_id'] for g in grades]
        answers = StudentAnswer.objects.select_related('attempt__quiz').in_bulk(answer_ids)
        missing = [i for i in answer_ids if i not in answers]
        if missing:
            return Response({"detail": f"Answers not found: {missing}"}, status=status.HTTP_404_NOT_FOUND)
        for answer in answers.values():
            if not can_grade(request.user, answer.attempt.quiz):
                AuditLog.log(
                    event_type=AuditLog.EventType.PERMISSION_DENIED,
                    description=f"Bulk grade refused for answer {answer.id}",
                    request=request,
                    metadata={'answer_id': answer.id}
                )
                return Response({"detail": IsQuizGrader.message}, status=status.HTTP_403_FORBIDDEN)

        graded = GradingWorkflow.grade_many(grades, grader=request.user)

        AuditLog.log(
            event_type=AuditLog.EventType.ANSWER_GRADED,
            description=f"Bulk graded {len(graded)} answer(s)",
            request=request,
            user=request.user,
            metadata={'answer_ids': answer_ids}
        )

        return Response({
            'graded_count': len(graded),
            'results': [
                {
                    'answer_id': answer.id,
                    'points_earned': float(answer.points_earned),
                    'attempt_id': answer.attempt.id,
                    'attempt_status': answer.attempt.status,
                }
                for answer in graded
            ]
        })
