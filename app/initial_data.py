import logging

from sqlmodel import Session, select

from app.core.db import engine, init_db
from app.models import Challenge, ChallengeOption, ChallengeType, Course, Lesson, Unit

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# (question, type, [(option text, correct), ...])
STARTER_COURSE = {
    "title": "Português",
    "image_src": "/pt.svg",
    "units": [
        {
            "title": "Unit 1",
            "description": "Learn the basics of Portuguese",
            "lessons": [
                (
                    "Basic greetings",
                    [
                        ("How do you say 'Hello' in Portuguese?", ChallengeType.SELECT,
                         [("Olá", True), ("Adeus", False), ("Obrigado", False)]),
                        ("What is the translation of 'Good morning'?", ChallengeType.SELECT,
                         [("Boa noite", False), ("Bom dia", True), ("Boa tarde", False)]),
                        ("'Obrigado'", ChallengeType.ASSIST,
                         [("Thank you", True), ("Please", False), ("Sorry", False)]),
                    ],
                ),
                (
                    "Personal pronouns",
                    [
                        ("Which one means 'I'?", ChallengeType.SELECT,
                         [("Tu", False), ("Eu", True), ("Nós", False)]),
                        ("'Nós'", ChallengeType.ASSIST,
                         [("We", True), ("They", False), ("You", False)]),
                    ],
                ),
                (
                    "Numbers 1-10",
                    [
                        ("How do you say 'three'?", ChallengeType.SELECT,
                         [("Dois", False), ("Três", True), ("Quatro", False)]),
                        ("'Dez'", ChallengeType.ASSIST,
                         [("Ten", True), ("Six", False), ("Two", False)]),
                    ],
                ),
            ],
        },
        {
            "title": "Unit 2",
            "description": "Greetings and introductions",
            "lessons": [
                (
                    "Introducing yourself",
                    [
                        ("How do you say 'My name is'?", ChallengeType.SELECT,
                         [("Eu sou de", False), ("O meu nome é", True), ("Eu tenho", False)]),
                        ("'Muito prazer'", ChallengeType.ASSIST,
                         [("Nice to meet you", True), ("Very good", False), ("Good night", False)]),
                    ],
                ),
                (
                    "Family",
                    [
                        ("Which one means 'mother'?", ChallengeType.SELECT,
                         [("Pai", False), ("Irmã", False), ("Mãe", True)]),
                    ],
                ),
            ],
        },
    ],
}

SPANISH_COURSE = {
    "title": "Español",
    "image_src": "/es.svg",
    "units": [
        {
            "title": "Unidad 1",
            "description": "Learn the basics of Spanish",
            "lessons": [
                (
                    "Saludos básicos",
                    [
                        ("How do you say 'Hello' in Spanish?", ChallengeType.SELECT,
                         [("Hola", True), ("Adiós", False), ("Gracias", False), ("Por favor", False)]),
                        ("What is 'Good morning' in Spanish?", ChallengeType.SELECT,
                         [("Buenas noches", False), ("Buenos días", True), ("Buenas tardes", False)]),
                        ("How do you say 'Goodbye'?", ChallengeType.SELECT,
                         [("Hola", False), ("Adiós", True), ("Hasta luego", False)]),
                    ],
                ),
                (
                    "Pronombres personales",
                    [
                        ("How do you say 'I' in Spanish?", ChallengeType.SELECT,
                         [("Yo", True), ("Tú", False), ("Él", False), ("Nosotros", False)]),
                        ("'Nosotros'", ChallengeType.ASSIST,
                         [("We", True), ("They", False), ("You", False)]),
                    ],
                ),
                (
                    "Ser y estar",
                    [
                        ("'I am tired' uses which verb?", ChallengeType.SELECT,
                         [("Ser", False), ("Estar", True), ("Tener", False)]),
                        ("Complete: 'Yo ___ feliz' (temporary)", ChallengeType.SELECT,
                         [("soy", False), ("estoy", True), ("tengo", False)]),
                    ],
                ),
                (
                    "Números 1-10",
                    [
                        ("How do you say 'five' in Spanish?", ChallengeType.SELECT,
                         [("Cuatro", False), ("Cinco", True), ("Seis", False)]),
                        ("'Ocho'", ChallengeType.ASSIST,
                         [("Seven", False), ("Eight", True), ("Nine", False)]),
                    ],
                ),
                (
                    "Colores",
                    [
                        ("How do you say 'blue' in Spanish?", ChallengeType.SELECT,
                         [("Verde", False), ("Azul", True), ("Rojo", False)]),
                        ("'Blanco'", ChallengeType.ASSIST,
                         [("Black", False), ("White", True), ("Brown", False)]),
                    ],
                ),
            ],
        },
        {
            "title": "Unidad 2",
            "description": "Greetings and introductions",
            "lessons": [
                (
                    "Presentarse",
                    [
                        ("How do you ask 'What is your name?'", ChallengeType.SELECT,
                         [("¿Cómo te llamas?", True), ("¿Cuántos años tienes?", False), ("¿De dónde eres?", False)]),
                        ("'Mucho gusto'", ChallengeType.ASSIST,
                         [("Goodbye", False), ("Nice to meet you", True), ("See you later", False)]),
                    ],
                ),
                (
                    "Nacionalidades",
                    [
                        ("How do you say 'Spanish' (nationality)?", ChallengeType.SELECT,
                         [("Español", True), ("Francés", False), ("Italiano", False)]),
                        ("'Soy mexicano'", ChallengeType.ASSIST,
                         [("I am Mexican", True), ("I am American", False), ("I am German", False)]),
                    ],
                ),
            ],
        },
    ],
}


def seed_course(session: Session, data: dict = STARTER_COURSE) -> Course:
    course = session.exec(select(Course).where(Course.title == data["title"])).first()
    if course:
        logger.info("Course %s already present, skipping seed", data["title"])
        return course

    course = Course(title=data["title"], image_src=data["image_src"])
    for unit_order, unit_data in enumerate(data["units"], start=1):
        unit = Unit(
            title=unit_data["title"],
            description=unit_data["description"],
            order=unit_order,
        )
        for lesson_order, (lesson_title, challenges) in enumerate(unit_data["lessons"], start=1):
            lesson = Lesson(title=lesson_title, order=lesson_order)
            for challenge_order, (question, challenge_type, options) in enumerate(challenges, start=1):
                challenge = Challenge(question=question, type=challenge_type, order=challenge_order)
                challenge.options = [
                    ChallengeOption(text=text, correct=correct) for text, correct in options
                ]
                lesson.challenges.append(challenge)
            unit.lessons.append(lesson)
        course.units.append(unit)

    session.add(course)
    session.commit()
    session.refresh(course)
    logger.info("Seeded course %s with %s units", course.title, len(data["units"]))
    return course


def init() -> None:
    with Session(engine) as session:
        init_db(session)
        for data in (STARTER_COURSE, SPANISH_COURSE):
            seed_course(session, data)


def main() -> None:
    logger.info("Creating initial data")
    init()
    logger.info("Initial data created")


if __name__ == "__main__":
    main()
