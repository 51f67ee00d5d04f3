"""
Management command to set up demo data for the Quiz Assessment Engine.
Creates demo users and a published quiz with one question of every type.
"""
from decimal import Decimal

from django.core.management.base import BaseCommand
from django.contrib.auth.models import User
from django.db import transaction
from rest_framework.authtoken.models import Token
from quizzes.models import Quiz, Question, AnswerOption, CorrectAnswer, QuestionBlank, UserProfile


class Command(BaseCommand):
    help = 'Set up demo data for testing'

    def handle(self, *args, **options):
        self.stdout.write(self.style.NOTICE('\n🎓 Setting up Quiz Assessment Engine Demo Data...\n'))

        student = self._get_or_create_user(
            'student', 'student123', UserProfile.Role.STUDENT,
            email='student@example.com', first_name='Test', last_name='Student'
        )
        teacher = self._get_or_create_user(
            'teacher', 'teacher123', UserProfile.Role.TEACHER,
            email='teacher@example.com', first_name='Test', last_name='Teacher'
        )
        admin = self._get_or_create_user(
            'admin', 'admin123', UserProfile.Role.ADMIN,
            email='admin@example.com', is_staff=True, is_superuser=True
        )

        tokens = {user.username: Token.objects.get_or_create(user=user)[0] for user in (student, teacher, admin)}

        quiz, created = Quiz.objects.get_or_create(
            title='Geography & Science Basics',
            defaults={
                'description': 'A short quiz covering every question type',
                'instructions': 'Answer every question. Your answers are saved as you go.',
                'total_points': Decimal('25.00'),
                'time_limit_minutes': 30,
                'max_attempts': 3,
                'passing_score': Decimal('60.00'),
                'is_published': True,
                'created_by': teacher,
            }
        )

        if created:
            self._create_questions(quiz)
            self.stdout.write(self.style.SUCCESS(f'✓ Quiz: {quiz.title} with {quiz.get_question_count()} questions'))
        else:
            self.stdout.write(f'  Quiz already exists: {quiz.title}')

        # Print summary
        self.stdout.write(self.style.SUCCESS('\n' + '='*60))
        self.stdout.write(self.style.SUCCESS('🎉 Demo Setup Complete!'))
        self.stdout.write(self.style.SUCCESS('='*60))

        self.stdout.write('\n📋 Demo Accounts:')
        self.stdout.write('  ┌─────────────┬─────────────┬──────────────┐')
        self.stdout.write('  │ Role        │ Username    │ Password     │')
        self.stdout.write('  ├─────────────┼─────────────┼──────────────┤')
        self.stdout.write('  │ Student     │ student     │ student123   │')
        self.stdout.write('  │ Teacher     │ teacher     │ teacher123   │')
        self.stdout.write('  │ Admin       │ admin       │ admin123     │')
        self.stdout.write('  └─────────────┴─────────────┴──────────────┘')

        self.stdout.write('\n🔑 API Tokens:')
        self.stdout.write(f'  Student: {tokens["student"].key}')
        self.stdout.write(f'  Teacher: {tokens["teacher"].key}')
        self.stdout.write(f'  Admin:   {tokens["admin"].key}')

        self.stdout.write('\n📚 API Documentation:')
        self.stdout.write('  Swagger UI: http://localhost:8000/api/docs/')
        self.stdout.write('  ReDoc:      http://localhost:8000/api/redoc/')

        self.stdout.write('\n🧪 Test API:')
        self.stdout.write(
            f'  curl -X POST -H "Authorization: Token {tokens["student"].key}" '
            f'http://localhost:8000/api/quizzes/{quiz.id}/start/'
        )
        self.stdout.write('')

    def _get_or_create_user(self, username, password, role, **defaults):
        user, created = User.objects.get_or_create(username=username, defaults={'is_active': True, **defaults})
        if created:
            user.set_password(password)
            user.save()
            user.profile.role = role
            user.profile.save()
            self.stdout.write(self.style.SUCCESS(f'✓ Created {role}: {username} / {password}'))
        else:
            self.stdout.write(f'  {username} user already exists')
        return user

    @transaction.atomic
    def _create_questions(self, quiz):
        q1 = Question.objects.create(
            quiz=quiz,
            question_type=Question.QuestionType.SINGLE_CHOICE,
            text='What is the capital of Australia?',
            points=Decimal('2.00'),
            order=1,
        )
        for order, (text, is_correct) in enumerate([('Sydney', False), ('Canberra', True), ('Melbourne', False)], 1):
            AnswerOption.objects.create(question=q1, text=text, is_correct=is_correct, order=order)

        q2 = Question.objects.create(
            quiz=quiz,
            question_type=Question.QuestionType.MULTIPLE_CHOICE,
            text='Which of these are noble gases?',
            points=Decimal('4.00'),
            order=2,
            explanation='Helium and neon are noble gases; nitrogen is not.',
        )
        for order, (text, is_correct) in enumerate([('Helium', True), ('Nitrogen', False), ('Neon', True)], 1):
            AnswerOption.objects.create(question=q2, text=text, is_correct=is_correct, order=order)

        q3 = Question.objects.create(
            quiz=quiz,
            question_type=Question.QuestionType.SHORT_ANSWER,
            text='What is the chemical symbol for gold?',
            points=Decimal('2.00'),
            order=3,
        )
        CorrectAnswer.objects.create(question=q3, answer_text='Au', case_sensitive=True)

        Question.objects.create(
            quiz=quiz,
            question_type=Question.QuestionType.ESSAY,
            text='Explain why the sky appears blue.',
            points=Decimal('6.00'),
            order=4,
        )

        Question.objects.create(
            quiz=quiz,
            question_type=Question.QuestionType.FILE_UPLOAD,
            text='Upload a labelled diagram of the water cycle.',
            points=Decimal('5.00'),
            order=5,
        )

        q6 = Question.objects.create(
            quiz=quiz,
            question_type=Question.QuestionType.FILL_BLANK_TEXT,
            text='The capital of France is [1] and the capital of Germany is [2].',
            points=Decimal('4.00'),
            order=6,
        )
        for blank_id, answer in [(1, 'Paris'), (2, 'Berlin')]:
            QuestionBlank.objects.create(question=q6, blank_id=blank_id)
            CorrectAnswer.objects.create(question=q6, answer_text=answer, blank_id=blank_id)

        q7 = Question.objects.create(
            quiz=quiz,
            question_type=Question.QuestionType.FILL_BLANK_DROPDOWN,
            text='Water boils at [1] degrees Celsius at sea level.',
            points=Decimal('2.00'),
            order=7,
        )
        QuestionBlank.objects.create(question=q7, blank_id=1)
        for order, (text, is_correct) in enumerate([('90', False), ('100', True), ('110', False)], 1):
            AnswerOption.objects.create(question=q7, text=text, is_correct=is_correct, order=order, blank_id=1)
