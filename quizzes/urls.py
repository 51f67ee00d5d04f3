from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .api.views import QuizViewSet, AttemptViewSet, AnswerGradeView, BulkGradeView

# Router for ViewSets
router = DefaultRouter()
router.register(r'quizzes', QuizViewSet, basename='quiz')
router.register(r'attempts', AttemptViewSet, basename='attempt')

urlpatterns = [
    # ============================================
    # GRADING
    # ============================================
    path('answers/<int:answer_id>/grade/', AnswerGradeView.as_view(), name='answer-grade'),
    path('grading/bulk/', BulkGradeView.as_view(), name='bulk-grade'),

    # ============================================
    # CORE API ROUTES (ViewSets)
    # ============================================
    path('', include(router.urls)),
]
