import logging
import os
import sys

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

from config import settings
from database import SessionLocal, init_db
from models.users import User, UserRole
from models.material import Material
from models.supplier import Supplier
from utils.hashing import get_password_hash

logger = logging.getLogger("seed_db")

# Starter catalog; stock arrives later through stock entries
SAMPLE_MATERIALS = [
    {"name": "Caderno universitário 96 folhas", "category": "Papelaria", "unit": "unidade", "min_stock": 50},
    {"name": "Lápis preto nº 2", "category": "Escrita", "unit": "caixa", "min_stock": 20},
    {"name": "Caneta esferográfica azul", "category": "Escrita", "unit": "caixa", "min_stock": 20},
    {"name": "Papel sulfite A4", "category": "Papelaria", "unit": "resma", "min_stock": 30},
    {"name": "Cola branca 90g", "category": "Artes", "unit": "unidade", "min_stock": 40},
    {"name": "Giz de cera 12 cores", "category": "Artes", "unit": "caixa", "min_stock": 25},
]

SAMPLE_SUPPLIERS = [
    {"name": "Papelaria Central", "email": "vendas@papelariacentral.com.br", "phone": "(11) 3333-0000"},
    {"name": "Distribuidora Escolar", "email": "contato@distescolar.com.br", "phone": "(11) 4444-0000"},
]


def seed():
    """Creates the tables, the default administrator and a sample catalog (idempotent)."""
    init_db()
    session = SessionLocal()
    try:
        email = settings.DEFAULT_ADMIN_EMAIL.strip().lower()
        if not session.query(User).filter(User.email == email).first():
            session.add(User(
                name="Administrador",
                email=email,
                password_hash=get_password_hash(settings.DEFAULT_ADMIN_PASSWORD),
                role=UserRole.administrador.value,
            ))
            logger.info("Default administrator %s created", email)

        if session.query(Material).count() == 0:
            session.add_all(Material(current_stock=0, **m) for m in SAMPLE_MATERIALS)
            logger.info("%s sample materials created", len(SAMPLE_MATERIALS))

        if session.query(Supplier).count() == 0:
            session.add_all(Supplier(**s) for s in SAMPLE_SUPPLIERS)
            logger.info("%s sample suppliers created", len(SAMPLE_SUPPLIERS))

        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    seed()
