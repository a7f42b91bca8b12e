import argparse
import json
from pathlib import Path
from typing import List, Optional

from . import __version__
from .dictionary import SkillDictionary
from .env import load_env, load_settings
from .errors import BidMatchError
from .logger import get_logger
from .manage import ManageSkillDictionaryUseCase
from .normalize import TECH_LAYERS, utc_now
from .profile import BidProfile, canonicalize_layer_skills
from .ranking import CalculateBidMatchRateUseCase
from .repositories import SqlBidRepository, SqlSkillDictionaryRepository, SqlSkillReviewQueueRepository
from .review import REVIEW_STATUSES, ReviewUnknownSkillsUseCase
from .seed import build_seed_dictionary
from .storage import diff_dictionaries, is_empty_diff, load_json_file, save_json_file
from .versioning import ExportDictionaryUseCase, ImportDictionaryUseCase
from .weights import LayerWeightTable


def _dictionaries(args: argparse.Namespace) -> SqlSkillDictionaryRepository:
    return SqlSkillDictionaryRepository(Path(args.db))


def _bids(args: argparse.Namespace) -> SqlBidRepository:
    return SqlBidRepository(Path(args.db))


def _review_queue(args: argparse.Namespace) -> SqlSkillReviewQueueRepository:
    return SqlSkillReviewQueueRepository(Path(args.db))


def _review(args: argparse.Namespace) -> ReviewUnknownSkillsUseCase:
    return ReviewUnknownSkillsUseCase(_review_queue(args), _dictionaries(args))


def cmd_dict_init(args: argparse.Namespace) -> None:
    repo = _dictionaries(args)
    current = repo.get_current()
    if current is not None and not args.force:
        raise SystemExit(f"Dictionary already initialized at version {current.version}. Use --force to reseed.")
    version = args.version or f"{utc_now().year}.1"
    if args.empty:
        dictionary = SkillDictionary.create(version)
    else:
        dictionary = build_seed_dictionary(version)
    repo.save(dictionary.freeze())
    print(f"Initialized dictionary {dictionary.version} with {len(dictionary)} skills")


def cmd_dict_export(args: argparse.Namespace) -> None:
    result = ExportDictionaryUseCase(_dictionaries(args)).execute(args.version)
    if not result["success"]:
        print(result["message"])
        raise SystemExit(2)
    if args.output:
        save_json_file(Path(args.output), result["data"])
        print(result["message"])
        print(f"Written to {args.output}")
    else:
        print(json.dumps(result["data"], indent=2, ensure_ascii=False))


def cmd_dict_import(args: argparse.Namespace) -> None:
    data = load_json_file(Path(args.input))
    result = ImportDictionaryUseCase(_dictionaries(args)).execute(
        data, mode=args.mode, allow_version_downgrade=args.allow_downgrade
    )
    print(result["message"])
    if not result["success"]:
        raise SystemExit(2)
    if "conflictsResolved" in result:
        print(f"Conflicts: {result['conflictsResolved']}")


def cmd_dict_add_skill(args: argparse.Namespace) -> None:
    result = ManageSkillDictionaryUseCase(_dictionaries(args)).add_canonical_skill(args.name, args.category)
    print(f"{result['message']} (version {result['dictionaryVersion']})")


def cmd_dict_add_variation(args: argparse.Namespace) -> None:
    result = ManageSkillDictionaryUseCase(_dictionaries(args)).add_skill_variation(args.variation, args.canonical)
    print(f"{result['message']} (version {result['dictionaryVersion']})")


def cmd_dict_remove_skill(args: argparse.Namespace) -> None:
    result = ManageSkillDictionaryUseCase(_dictionaries(args)).remove_canonical_skill(args.name)
    print(f"{result['message']} (version {result['dictionaryVersion']})")


def cmd_dict_lookup(args: argparse.Namespace) -> None:
    manage = ManageSkillDictionaryUseCase(_dictionaries(args))
    for name in args.names:
        found = manage.lookup(name)
        if found is None:
            print(f"{name}: unknown")
        else:
            alias = " (variation)" if found["isVariation"] else ""
            print(f"{name}: {found['canonical']} [{found['category']}]{alias}")


def cmd_dict_versions(args: argparse.Namespace) -> None:
    repo = _dictionaries(args)
    versions = repo.get_all_versions()
    if not versions:
        print("No dictionary versions stored.")
        return
    current = repo.get_current()
    for d in versions:
        marker = "*" if current is not None and d.version == current.version else " "
        print(f"{marker} {d.version}  skills={len(d)}  created={d.created_at.isoformat()}")


def cmd_dict_diff(args: argparse.Namespace) -> None:
    repo = _dictionaries(args)
    old = repo.get_version(args.old)
    new = repo.get_version(args.new) if args.new else repo.get_current()
    if old is None:
        raise SystemExit(f"Dictionary version '{args.old}' not found")
    if new is None:
        raise SystemExit(f"Dictionary version '{args.new}' not found" if args.new else "No dictionary found")

    diff = diff_dictionaries(old.to_json(), new.to_json())
    print(f"Diff {diff['from']} -> {diff['to']}")
    if is_empty_diff(diff):
        print("No differences.")
        return
    for section in ("skills", "variations"):
        part = diff[section]
        for key in part["added"]:
            print(f"  + {section[:-1]} {key}")
        for key in part["removed"]:
            print(f"  - {section[:-1]} {key}")
        for key, change in part["changed"].items():
            print(f"  ~ {section[:-1]} {key}: {change['old']} -> {change['new']}")


def cmd_bid_add(args: argparse.Namespace) -> None:
    data = load_json_file(Path(args.input))
    records = data if isinstance(data, list) else [data]
    bids = _bids(args)

    # Validate the whole file before storing anything
    parsed = [BidProfile.from_json(record) for record in records]
    seen = set()
    for bid in parsed:
        if bid.id in seen or bids.find_by_id(bid.id) is not None:
            raise SystemExit(f"Bid already exists: {bid.id}")
        seen.add(bid.id)

    dictionary = None
    if args.canonicalize:
        dictionary = _dictionaries(args).get_current()
        if dictionary is None:
            raise SystemExit("No dictionary found")
    review = _review(args)

    for bid in parsed:
        if dictionary is not None and bid.is_layer_skills_format():
            stacks, unknown = canonicalize_layer_skills(bid.layer_skills, dictionary)
            bid = BidProfile(bid.id, bid.company, bid.role, stacks)
            if unknown:
                review.record_unknown_skills(unknown, detected_in=bid.id)
                print(f"[review] {bid.id}: queued skills not in dictionary {dictionary.version}: {', '.join(unknown)}")
        bids.add(bid)
        fmt = "layer-skills" if bid.is_layer_skills_format() else "legacy"
        print(f"[added] {bid.id} ({fmt})")


def cmd_bid_list(args: argparse.Namespace) -> None:
    bids = _bids(args).find_all()
    if not bids:
        print("No bids in store.")
        return
    print(f"Found {len(bids)} bids:\n")
    for bid in bids:
        print(f"ID: {bid.id}")
        print(f"  Company: {bid.company}")
        print(f"  Role: {bid.role}")
        if bid.is_layer_skills_format():
            for layer, skills in bid.layer_skills.layers():
                if skills:
                    print(f"  {layer}: {', '.join(f'{s.skill}:{s.weight:g}' for s in skills)}")
        else:
            print(f"  Stacks (legacy): {', '.join(bid.main_stacks)}")
        print()


def cmd_match(args: argparse.Namespace) -> None:
    weights_path = args.weights or args.settings.role_weights_path
    table = LayerWeightTable.from_file(Path(weights_path)) if weights_path else LayerWeightTable()
    results = CalculateBidMatchRateUseCase(_bids(args), weight_table=table).execute(args.bid_id)
    if args.limit is not None:
        results = results[:args.limit]

    if args.json:
        print(json.dumps(results, indent=2))
        return
    if not results:
        print("No comparable bids.")
        return
    for i, r in enumerate(results, 1):
        print(f"#{i} {r['bidId']}  {r['matchRatePercentage']:.1f}%  {r['company']} - {r['role']}")
        for layer in TECH_LAYERS:
            lb = r["layerBreakdown"][layer]
            if lb["matchingSkills"] or lb["missingSkills"]:
                print(
                    f"    {layer:<9} score={lb['score']:.2f} weight={lb['layerWeight']:.2f} "
                    f"match=[{', '.join(lb['matchingSkills'])}] missing=[{', '.join(lb['missingSkills'])}]"
                )


def cmd_review_list(args: argparse.Namespace) -> None:
    items = _review(args).get_queue_items(args.status)
    if not items:
        print("Review queue is empty.")
        return
    for item in sorted(items, key=lambda i: -i.frequency):
        line = f"{item.skill_name}  [{item.status}]  seen={item.frequency}  in={', '.join(item.detected_in)}"
        if item.reason:
            line += f"  reason={item.reason}"
        print(line)


def cmd_review_approve(args: argparse.Namespace) -> None:
    if bool(args.category) == bool(args.variation_of):
        raise SystemExit("Give exactly one of --category or --variation-of")
    review = _review(args)
    if args.category:
        result = review.approve_as_canonical(args.name, args.category)
        print(f"Approved '{result['skillName']}' as canonical [{args.category}] (version {result['dictionaryVersion']})")
    else:
        result = review.approve_as_variation(args.name, args.variation_of)
        print(
            f"Approved '{result['skillName']}' as variation of '{result['canonicalName']}' "
            f"(version {result['dictionaryVersion']})"
        )


def cmd_review_reject(args: argparse.Namespace) -> None:
    result = _review(args).reject_skill(args.name, args.reason)
    print(f"Rejected '{result['skillName']}': {result['reason']}")


def build_parser(default_db: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bidmatch", description="Skill dictionary and bid matching CLI")
    parser.add_argument("--version", dest="show_version", action="store_true", help="Show version")
    parser.add_argument("--db", default=default_db, help=f"Path to SQLite database (default: {default_db})")

    subparsers = parser.add_subparsers(dest="command")

    ini = subparsers.add_parser("dict-init", help="Create the first dictionary version from the built-in seed")
    ini.add_argument("--version", dest="version", help="Version to create (default: <current year>.1)")
    ini.add_argument("--empty", action="store_true", help="Start with no skills")
    ini.add_argument("--force", action="store_true", help="Save even if a dictionary exists")
    ini.set_defaults(func=cmd_dict_init)

    exp = subparsers.add_parser("dict-export", help="Export the current (or a given) dictionary version as JSON")
    exp.add_argument("--version", dest="version", help="Version to export (default: current)")
    exp.add_argument("--output", help="Write to file instead of stdout")
    exp.set_defaults(func=cmd_dict_export)

    imp = subparsers.add_parser("dict-import", help="Import a dictionary JSON file")
    imp.add_argument("--input", required=True, help="Path to dictionary JSON")
    imp.add_argument("--mode", choices=["replace", "merge"], default="replace", help="Import mode (default: replace)")
    imp.add_argument("--allow-downgrade", action="store_true", help="Allow importing an older or equal version")
    imp.set_defaults(func=cmd_dict_import)

    ads = subparsers.add_parser("dict-add-skill", help="Add a canonical skill (creates a new version)")
    ads.add_argument("--name", required=True)
    ads.add_argument("--category", required=True, choices=list(TECH_LAYERS))
    ads.set_defaults(func=cmd_dict_add_skill)

    adv = subparsers.add_parser("dict-add-variation", help="Add a variation alias (creates a new version)")
    adv.add_argument("--variation", required=True)
    adv.add_argument("--canonical", required=True)
    adv.set_defaults(func=cmd_dict_add_variation)

    rms = subparsers.add_parser("dict-remove-skill", help="Remove a canonical skill and its variations")
    rms.add_argument("--name", required=True)
    rms.set_defaults(func=cmd_dict_remove_skill)

    lkp = subparsers.add_parser("dict-lookup", help="Resolve skill names against the current dictionary")
    lkp.add_argument("names", nargs="+")
    lkp.set_defaults(func=cmd_dict_lookup)

    ver = subparsers.add_parser("dict-versions", help="List stored dictionary versions")
    ver.set_defaults(func=cmd_dict_versions)

    dif = subparsers.add_parser("dict-diff", help="Compare two dictionary versions")
    dif.add_argument("--old", required=True, help="Base version")
    dif.add_argument("--new", help="Compared version (default: current)")
    dif.set_defaults(func=cmd_dict_diff)

    bad = subparsers.add_parser("bid-add", help="Add bid profiles from a JSON file (object or list)")
    bad.add_argument("--input", required=True)
    bad.add_argument("--canonicalize", action="store_true", help="Map skill names through the current dictionary")
    bad.set_defaults(func=cmd_bid_add)

    bls = subparsers.add_parser("bid-list", help="List stored bids")
    bls.set_defaults(func=cmd_bid_list)

    mat = subparsers.add_parser("match", help="Rank other bids by weighted match rate against a bid")
    mat.add_argument("--bid-id", required=True)
    mat.add_argument("--weights", help="Role weight table JSON (or set BIDMATCH_ROLE_WEIGHTS)")
    mat.add_argument("--limit", type=int, help="Show only the top N results")
    mat.add_argument("--json", action="store_true", help="Print raw JSON results")
    mat.set_defaults(func=cmd_match)

    rvl = subparsers.add_parser("review-list", help="List unknown skills queued for review")
    rvl.add_argument("--status", choices=list(REVIEW_STATUSES), help="Only items with this status")
    rvl.set_defaults(func=cmd_review_list)

    rva = subparsers.add_parser("review-approve", help="Approve a queued skill (creates a new dictionary version)")
    rva.add_argument("--name", required=True)
    rva.add_argument("--category", choices=list(TECH_LAYERS), help="Approve as a new canonical skill")
    rva.add_argument("--variation-of", help="Approve as a variation of this canonical skill")
    rva.set_defaults(func=cmd_review_approve)

    rvr = subparsers.add_parser("review-reject", help="Reject a queued skill")
    rvr.add_argument("--name", required=True)
    rvr.add_argument("--reason", required=True)
    rvr.set_defaults(func=cmd_review_reject)

    return parser


def main(argv: Optional[List[str]] = None):
    # Load .env if present (BIDMATCH_DB_PATH, BIDMATCH_LOG_LEVEL, ...)
    load_env()
    settings = load_settings()
    get_logger().configure(
        level=settings.log_level,
        log_dir=settings.log_dir,
        enable_file=settings.log_dir is not None,
    )

    parser = build_parser(str(settings.db_path))
    args = parser.parse_args(argv)
    args.settings = settings

    if args.show_version:
        print(__version__)
        return

    if hasattr(args, "func"):
        try:
            args.func(args)
        except BidMatchError as e:
            raise SystemExit(str(e))
        return

    parser.print_help()


if __name__ == "__main__":
    main()
