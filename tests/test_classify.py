from __future__ import annotations

import pytest

from admin_records.classify import (
    approval_state,
    classify_category,
    deletion_action,
    detect_category,
    is_approval_like,
    is_asset_like,
    is_rejected,
)
from admin_records.models import CANONICAL_CATEGORIES, ApprovalState, Category
from admin_records.records import extract_fields


def test_asset_detection_on_category_and_description():
    assert is_asset_like({"category": "IT Assets"}) is True
    assert is_asset_like({"description": "Chair for office"}) is True
    assert is_asset_like({"category": "Food"}) is False


@pytest.mark.parametrize(
    "rec",
    [
        {"subCategory": "Fixed asset"},
        {"pettyFor": "New laptop for HR"},
        {"assetTag": "AT-0042"},
        {"mainCategory": "Capex"},
        {"type": "Capital purchase"},
    ],
)
def test_asset_detection_other_signals(rec):
    assert is_asset_like(rec)


def test_asset_words_match_whole_words_only():
    assert not is_asset_like({"description": "Cartridge refill"})
    assert not is_asset_like({"description": "Accessories"})


@pytest.mark.parametrize(
    "rec",
    [
        {"approval": "Approved"},
        {"status": "ACKNOWLEDGED by HR"},
        {"paymentStatus": "paid"},
        {"statusText": "Confirmed"},
        {"status": 1},
        {"statusCode": "1"},
    ],
)
def test_approval_like_variants(rec):
    assert is_approval_like(rec)


def test_approval_like_negatives():
    assert not is_approval_like({})
    assert not is_approval_like({"status": "pending"})
    assert not is_approval_like({"status": True})
    assert not is_approval_like({"code": 2})


def test_rejection_wins_over_approval_signals():
    rec = {"status": "Rejected", "approvedBy": "Manager"}
    assert is_rejected(rec)
    assert approval_state(rec) is ApprovalState.REJECTED


@pytest.mark.parametrize(
    ("rec", "expected"),
    [
        ({"approved": True}, ApprovalState.APPROVED),
        ({"isApproved": True}, ApprovalState.APPROVED),
        ({"approvedBy": "HR"}, ApprovalState.APPROVED),
        ({"approval": "true"}, ApprovalState.APPROVED),
        ({"approval": "Pending"}, ApprovalState.PENDING),
        ({}, ApprovalState.PENDING),
        ({"approvalStatus": "reject"}, ApprovalState.REJECTED),
    ],
)
def test_approval_state(rec, expected):
    assert approval_state(rec) is expected


def test_classifiers_accept_normalized_records():
    rec = extract_fields({"id": "a", "category": "Office Assets", "approval": "Approved", "amount": 10})
    assert is_asset_like(rec)
    assert approval_state(rec).is_approved
    assert rec.approval is ApprovalState.APPROVED


@pytest.mark.parametrize(
    ("head", "expected"),
    [
        ("Food & Beverages", Category.FOOD),
        ("Petrol", Category.TRANSPORT_TRAVEL),
        ("Printing", Category.MARKETING),
        ("Stationery", Category.STATIONERY),
        ("Medicine", Category.MEDICAL),
        ("Software licence", Category.ASSETS),
        ("Electricity bill", Category.OFFICE_MAINTENANCE),
        ("Diwali festival", Category.WELFARE),
        ("Miscellaneous", Category.OTHERS),
        ("", Category.OTHERS),
    ],
)
def test_detect_category_keyword_rules(head, expected):
    assert detect_category({"category": head}) is expected


def test_detect_category_prefers_main_category_field():
    assert detect_category({"mainCategory": "Travel", "category": "Food"}) is Category.TRANSPORT_TRAVEL


def test_classify_category_first_substring_match():
    assert classify_category({"category": "Team food order"}, CANONICAL_CATEGORIES) == "Food"
    assert classify_category({"category": "Unmapped head"}, CANONICAL_CATEGORIES) == "Others"
    assert classify_category({}, ["Food"]) == "Others"
    rec = extract_fields({"id": "a", "category": "stationery items"})
    assert classify_category(rec, CANONICAL_CATEGORIES) == "Stationery"


@pytest.mark.parametrize(
    ("rec", "expected"),
    [
        ({"deleteInfo": {"actionType": "Delete"}, "approval": "Rejected"}, "Delete"),
        ({"deleteInfo": {"actionType": "  "}, "approval": "Rejected"}, "Rejected"),
        ({"deleteInfo": "moved", "approval": "rejected"}, "rejected"),
        ({"description": "no action"}, "Unknown"),
        (None, "Unknown"),
    ],
)
def test_deletion_action_prefers_delete_info(rec, expected):
    assert deletion_action(rec) == expected
