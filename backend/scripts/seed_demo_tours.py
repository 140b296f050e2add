from tourdesk.db.models import BokunProduct, Tour
from tourdesk.db.session import SessionLocal


DEMO_TOURS = [
    {
        "type": "NIGHT_TOUR",
        "name": "Kyoto Night Walk",
        "max_participants": 10,
        "time_slots": ["18:00"],
        "cancellation_cutoff_hours": 24,
        "cancellation_cutoff_hours_with_participant": 6,
        "next_day_cutoff_time": "22:00",
    },
    {
        "type": "MUSIC_TOUR",
        "name": "Music Tour",
        "max_participants": 8,
        "time_slots": ["14:00", "18:30"],
        "cancellation_cutoff_hours": 24,
        "cancellation_cutoff_hours_with_participant": 24,
        "next_day_cutoff_time": None,
    },
]


def seed_demo_tours() -> None:
    session = SessionLocal()
    try:
        existing_types = {tour.type for tour in session.query(Tour).all()}
        for spec in DEMO_TOURS:
            if spec["type"] in existing_types:
                print(f"Tour {spec['type']} already exists")
                continue
            session.add(Tour(**spec))
            print(f"Created tour {spec['type']}")

        if not session.query(BokunProduct).filter(BokunProduct.local_tour_type == "NIGHT_TOUR").first():
            session.add(BokunProduct(bokun_product_id="15221", local_tour_type="NIGHT_TOUR", is_active=True))
        session.commit()
    finally:
        session.close()


if __name__ == "__main__":
    seed_demo_tours()
