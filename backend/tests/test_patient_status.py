"""
Tests for renewal marking and patient status derivation.

Status is computed per patient across the full history: a record's status
depends on whether a later record of the same treatment exists.
"""
import pytest

from conftest import make_proc
from status_rules import (
    PATIENT_STATUS_RULES,
    PatientStatus,
    ProcedureStatus,
    StatusFlags,
    compute_procedure_statuses,
    derive_patient_status,
    mark_renewals,
    resolve_patient_status,
)

TODAY = "2024-06-25"


# =============================================================================
# TEST: mark_renewals() / compute_procedure_statuses()
# =============================================================================
class TestRenewalMarking:
    """Only the latest record per normalized name keeps its computed status"""

    def test_botox_variants_group_and_older_is_renewed(self):
        procs = [
            make_proc("Botox", "2024-01-01", 6),
            make_proc("Peeling", "2024-03-01", 3),
            make_proc(" BÓTOX", "2024-07-01", 6),
        ]
        assert mark_renewals(procs) == [True, False, False]

        statuses = compute_procedure_statuses(procs, TODAY)
        assert statuses[0].status == ProcedureStatus.RENEWED
        assert statuses[0].daysValue is None
        # July Botox: expires 2025-01-01
        assert statuses[2].status == ProcedureStatus.ACTIVE
        # Peeling: expires 2024-06-01 -> overdue 24 days, never renewed
        assert statuses[1].status == ProcedureStatus.OVERDUE
        assert statuses[1].daysValue == 24

    def test_input_order_does_not_matter(self):
        """Newest record survives even when listed first"""
        procs = [
            make_proc("Botox", "2024-07-01", 6),
            make_proc("Botox", "2024-01-01", 6),
            make_proc("Botox", "2023-06-01", 6),
        ]
        assert mark_renewals(procs) == [False, True, True]

    def test_singleton_group_never_renewed(self):
        procs = [make_proc("Peeling", "2020-01-01", 3)]
        assert mark_renewals(procs) == [False]

    def test_same_day_tie_keeps_last_input_record(self):
        procs = [
            make_proc("Botox", "2024-01-01", 6, proc_id="a"),
            make_proc("Botox", "2024-01-01", 6, proc_id="b"),
        ]
        assert mark_renewals(procs) == [True, False]

    def test_undated_record_is_superseded_by_dated_one(self):
        procs = [
            make_proc("Botox", "2024-01-01", 6),
            make_proc("Botox", None, 6),
        ]
        assert mark_renewals(procs) == [False, True]

    def test_nameless_records_are_not_grouped(self):
        procs = [make_proc("", "2024-01-01", 6), make_proc(None, "2024-02-01", 6)]
        assert mark_renewals(procs) == [False, False]

    def test_renewed_record_ignores_its_own_duration(self):
        """A superseded record is 'renewed' even if it would be no-duration"""
        procs = [make_proc("Botox", "2024-01-01", None), make_proc("Botox", "2024-02-01", 6)]
        statuses = compute_procedure_statuses(procs, TODAY)
        assert statuses[0].status == ProcedureStatus.RENEWED

    def test_accepts_plain_dicts(self):
        procs = [
            {"procedureName": "Botox", "performedDate": "2024-01-01", "effectDurationMonths": 6},
            {"procedureName": "botox", "performedDate": "2024-05-01", "effectDurationMonths": 6},
        ]
        statuses = compute_procedure_statuses(procs, TODAY)
        assert [s.status for s in statuses] == [ProcedureStatus.RENEWED, ProcedureStatus.ACTIVE]

    def test_does_not_mutate_records(self):
        procs = [make_proc("Botox", "2024-01-01", 6), make_proc("Botox", "2024-02-01", 6)]
        compute_procedure_statuses(procs, TODAY)
        assert procs[0].performedDate == "2024-01-01"
        assert procs[0].effectDurationMonths == 6


# =============================================================================
# TEST: decision table
# =============================================================================
class TestPatientStatusRules:
    """The ordered (predicate, result) table"""

    def test_rule_order_is_severity_hierarchy(self):
        assert [result for _, result in PATIENT_STATUS_RULES] == [
            PatientStatus.OVERDUE,
            PatientStatus.CONTACT,
            PatientStatus.ACTIVE,
            PatientStatus.VERIFY,
        ]

    @pytest.mark.parametrize("flags,expected", [
        (StatusFlags(hasOverdue=True), PatientStatus.OVERDUE),
        (StatusFlags(hasOverdue=True, hasNoDuration=True), PatientStatus.OVERDUE),
        (StatusFlags(hasOverdue=True, hasNearExpiry=True), PatientStatus.CONTACT),
        (StatusFlags(hasOverdue=True, hasActive=True), PatientStatus.ACTIVE),
        (StatusFlags(hasNearExpiry=True, hasActive=True), PatientStatus.CONTACT),
        (StatusFlags(hasActive=True, hasNoDuration=True), PatientStatus.ACTIVE),
        (StatusFlags(hasNoDuration=True), PatientStatus.VERIFY),
        (StatusFlags(), PatientStatus.UNKNOWN),
    ])
    def test_resolve(self, flags, expected):
        assert resolve_patient_status(flags) == expected


# =============================================================================
# TEST: derive_patient_status()
# =============================================================================
class TestDerivePatientStatus:
    """End-to-end patient classification"""

    CREATED = "2023-01-01T00:00:00Z"

    def test_overdue_and_near_expiry_is_contact(self):
        procs = [
            make_proc("Peeling", "2024-01-01", 3),  # expired 2024-04-01
            make_proc("Botox", "2024-01-01", 6),    # 6 days left
        ]
        assert derive_patient_status(procs, self.CREATED, "Active", TODAY) == PatientStatus.CONTACT

    def test_only_overdue_is_overdue(self):
        procs = [make_proc("Peeling", "2024-01-01", 3)]
        assert derive_patient_status(procs, self.CREATED, "Active", TODAY) == PatientStatus.OVERDUE

    def test_active_only(self):
        procs = [make_proc("Bioestimulador", "2024-05-01", 12)]
        assert derive_patient_status(procs, self.CREATED, None, TODAY) == PatientStatus.ACTIVE

    def test_no_duration_only_is_verify(self):
        procs = [make_proc("Limpeza", "2024-05-01", None)]
        assert derive_patient_status(procs, self.CREATED, None, TODAY) == PatientStatus.VERIFY

    def test_inactive_override_wins(self):
        procs = [make_proc("Bioestimulador", "2024-05-01", 12)]
        assert derive_patient_status(procs, self.CREATED, "Inactive", TODAY) == PatientStatus.INACTIVE

    def test_inactive_override_with_no_procedures(self):
        assert derive_patient_status([], "2024-06-25T00:00:00Z", "Inactive", TODAY) == PatientStatus.INACTIVE

    def test_renewed_records_do_not_count(self):
        """An old overdue Botox superseded by an active one leaves the patient Active"""
        procs = [
            make_proc("Botox", "2023-01-01", 6),
            make_proc("Botox", "2024-06-01", 6),
        ]
        assert derive_patient_status(procs, self.CREATED, None, TODAY) == PatientStatus.ACTIVE

    def test_new_patient_two_hours_old(self):
        created = "2024-06-25T08:00:00Z"
        assert derive_patient_status([], created, None, "2024-06-25T10:00:00Z") == PatientStatus.NEW

    def test_patient_48_hours_old_is_unclassified(self):
        created = "2024-06-25T08:00:00Z"
        assert derive_patient_status([], created, None, "2024-06-27T08:00:00Z") == PatientStatus.UNKNOWN

    def test_none_procedures_behaves_as_empty(self):
        created = "2024-06-25T08:00:00Z"
        assert derive_patient_status(None, created, None, "2024-06-25T09:00:00Z") == PatientStatus.NEW

    def test_missing_created_at_is_unclassified(self):
        assert derive_patient_status([], None, None, TODAY) == PatientStatus.UNKNOWN

    def test_unknown_value_is_empty_string(self):
        assert PatientStatus.UNKNOWN.value == ""
