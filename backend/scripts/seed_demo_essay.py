from essay_coach.db import SessionLocal, engine, Base
from essay_coach.models import Essay, EssayHighlight

DEMO_TEXT = (
    "Ever since I was young, I have always been passionate about helping others. "
    "Last summer I rebuilt the irrigation pump at my grandmother's farm with parts "
    "from a scrapyard, and it still runs."
)

def main():
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        # 1) INSERT parent first and FLUSH so it's persisted before FK children
        essay = Essay(title="Common App draft", text=DEMO_TEXT)
        db.add(essay)
        db.flush()

        # 2) Now insert children safely
        cliche = "Ever since I was young"
        db.add(EssayHighlight(
            essay_id=essay.essay_id, position=0,
            start_index=0, end_index=len(cliche),
            severity="red", category="cliche",
            why="Opening with a childhood cliche hides your voice.",
            how="Start in the middle of a specific moment.",
            suggestion="Begin with the scrapyard.",
        ))
        pump = "rebuilt the irrigation pump"
        start = DEMO_TEXT.index(pump)
        db.add(EssayHighlight(
            essay_id=essay.essay_id, position=1,
            start_index=start, end_index=start + len(pump),
            severity="green", category="strength",
            why="Concrete, active detail.",
            how="Expand on what you learned while fixing it.",
            suggestion="",
        ))

        db.commit()
        print(essay.essay_id)
    finally:
        db.close()

if __name__ == "__main__":
    main()
