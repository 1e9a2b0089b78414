# Seed data - deterministic demo clinic, statuses computed against SEED_REFERENCE_DATE
import logging

from models import (
    Appointment,
    CatalogEntry,
    Patient,
    ProcedureRecord,
    appointments,
    catalog,
    patients,
    procedures,
)

logger = logging.getLogger(__name__)

# Seeded records classify as documented below when "today" is this date
SEED_REFERENCE_DATE = "2024-06-25"

def seed_data():
    """Initialize catalog, patients, procedures and appointments"""
    # Clear existing data
    patients.clear()
    procedures.clear()
    catalog.clear()
    appointments.clear()

    # Price / duration catalog. Names carry diacritics on purpose; procedures
    # reference them by free-text name.
    catalog.extend([
        CatalogEntry(name="Botox", category="Injectables", price=1200.0, effectDurationMonths=6),
        CatalogEntry(name="Peeling Químico", category="Skin", price=450.0, effectDurationMonths=3),
        CatalogEntry(name="Bioestimulador de Colágeno", category="Injectables", price=2500.0, effectDurationMonths=12),
        CatalogEntry(name="Microagulhamento", category="Skin", price=600.0, effectDurationMonths=4),
        CatalogEntry(name="Limpeza de Pele", category="Skin", price=180.0, effectDurationMonths=None),
    ])

    # P1 Ana: Botox renewed in Jan (expires 2024-07-01, 6 days left) -> Contact
    # P2 Bruno: active bioestimulador + overdue microagulhamento -> Active
    # P3 Carla: Botox overdue 102 days, no visit for 9 months -> Overdue + churn
    # P4 Diego: only a procedure without configured duration -> Verify
    # P5 Elisa: manual Inactive override despite an active Botox -> Inactive
    # P6 Fabio: no procedures, registered the same day -> New
    # P7 Gabriela: overdue 268 days (beyond renewal window), 13 months away -> Overdue + churn
    # P8 Helena: upper-case name variant of the peel, 20 days left -> Contact
    patients.update({
        "P1": Patient(patientId="P1", name="Ana Souza", createdAt="2023-07-01T12:00:00Z", bankStatus="Active",
                      birthDate="1988-06-30", phone="11999990001"),
        "P2": Patient(patientId="P2", name="Bruno Lima", createdAt="2024-01-20T09:30:00Z", bankStatus="Active",
                      birthDate="1979-02-11", phone="11999990002"),
        "P3": Patient(patientId="P3", name="Carla Mendes", createdAt="2023-09-01T15:00:00Z", bankStatus="Active",
                      birthDate="1992-11-05", phone="11999990003"),
        "P4": Patient(patientId="P4", name="Diego Rocha", createdAt="2024-05-28T10:00:00Z", bankStatus="Active",
                      birthDate="1985-07-19", phone="11999990004"),
        "P5": Patient(patientId="P5", name="Elisa Castro", createdAt="2024-04-10T11:00:00Z", bankStatus="Inactive",
                      birthDate="1990-03-02", phone="11999990005"),
        "P6": Patient(patientId="P6", name="Fábio Nunes", createdAt="2024-06-24T20:00:00Z", bankStatus=None,
                      birthDate="2001-09-14", phone="11999990006"),
        "P7": Patient(patientId="P7", name="Gabriela Torres", createdAt="2023-05-15T08:00:00Z", bankStatus="Active",
                      birthDate="1975-12-24", phone="11999990007"),
        "P8": Patient(patientId="P8", name="Helena Prado", createdAt="2024-04-01T14:00:00Z", bankStatus="Active",
                      birthDate="1983-08-08", phone="11999990008"),
    })

    procedures.extend([
        ProcedureRecord(procedureId="pr1", patientId="P1", procedureName="Botox", performedDate="2023-07-10",
                        chargedValue=1200.0, productCost=400.0, supplyCost=50.0, roomCost=60.0, category="Injectables"),
        ProcedureRecord(procedureId="pr2", patientId="P1", procedureName="botóx ", performedDate="2024-01-01",
                        chargedValue=1200.0, productCost=420.0, supplyCost=50.0, roomCost=60.0, category="Injectables"),
        ProcedureRecord(procedureId="pr3", patientId="P1", procedureName="Peeling Químico", performedDate="2024-05-20",
                        chargedValue=450.0, productCost=90.0, supplyCost=20.0, roomCost=40.0, category="Skin"),
        ProcedureRecord(procedureId="pr4", patientId="P2", procedureName="Bioestimulador de Colágeno",
                        performedDate="2024-02-10", chargedValue=2500.0, productCost=900.0, supplyCost=80.0,
                        roomCost=60.0, category="Injectables"),
        ProcedureRecord(procedureId="pr5", patientId="P2", procedureName="Microagulhamento", performedDate="2024-02-20",
                        chargedValue=600.0, productCost=120.0, supplyCost=40.0, roomCost=40.0, category="Skin"),
        ProcedureRecord(procedureId="pr6", patientId="P3", procedureName="Botox", performedDate="2023-09-15",
                        chargedValue=1100.0, productCost=400.0, supplyCost=50.0, roomCost=60.0, category="Injectables"),
        ProcedureRecord(procedureId="pr7", patientId="P4", procedureName="Limpeza de Pele", performedDate="2024-06-01",
                        chargedValue=180.0, productCost=20.0, supplyCost=10.0, roomCost=15.0, category="Skin"),
        ProcedureRecord(procedureId="pr8", patientId="P5", procedureName="Botox", performedDate="2024-05-01",
                        chargedValue=1200.0, productCost=400.0, supplyCost=50.0, roomCost=60.0, category="Injectables"),
        ProcedureRecord(procedureId="pr9", patientId="P7", procedureName="Microagulhamento", performedDate="2023-06-01",
                        chargedValue=600.0, productCost=120.0, supplyCost=40.0, roomCost=40.0, category="Skin"),
        ProcedureRecord(procedureId="pr10", patientId="P8", procedureName="PEELING QUIMICO", performedDate="2024-04-15",
                        chargedValue=450.0, productCost=90.0, supplyCost=20.0, roomCost=40.0, category="Skin"),
    ])

    appointments.extend([
        Appointment(appointmentId="ap1", patientId="P1", date="2024-06-28", label="Retoque Botox"),
        Appointment(appointmentId="ap2", patientId="P3", date="2024-01-10", label="Botox"),
        Appointment(appointmentId="ap3", patientId="P6", date="2024-07-02", label="Avaliação inicial"),
    ])

    logger.info(
        "Seed data initialized: %d patients, %d procedures, %d catalog entries, %d appointments",
        len(patients), len(procedures), len(catalog), len(appointments),
    )

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    seed_data()
