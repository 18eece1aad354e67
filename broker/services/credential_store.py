"""SQLModel-backed storage for credential records, always scoped by owner."""

from sqlmodel import Session, select

from broker.models.credential import Credential


class SqlCredentialStore:
    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: int, credential_id: int) -> Credential | None:
        return self.session.exec(
            select(Credential).where(
                Credential.id == credential_id,
                Credential.user_id == user_id,
            )
        ).first()

    def put(self, record: Credential) -> Credential:
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return record

    def delete(self, user_id: int, credential_id: int) -> bool:
        record = self.get(user_id, credential_id)
        if record is None:
            return False
        self.session.delete(record)
        self.session.commit()
        return True

    def list(self, user_id: int) -> list[Credential]:
        return list(
            self.session.exec(
                select(Credential)
                .where(Credential.user_id == user_id)
                .order_by(Credential.name)
            ).all()
        )
