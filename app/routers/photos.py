"""
Entry photo API
"""
from typing import List, Dict, Any

from fastapi import APIRouter, Depends, File, Form, UploadFile, HTTPException
from loguru import logger

from database.supabase_client import ScoringDB, DatabaseError, RecordNotFoundError
from database.storage import PhotoStorage, PhotoStorageError
from app.dependencies import get_db, get_storage

router = APIRouter(prefix="/api", tags=["Photos"])


async def _remove_photo(storage: PhotoStorage, path: str) -> None:
    try:
        await storage.delete_photo(path)
    except PhotoStorageError as e:
        logger.warning(f"Photo not removed ({path}): {e}")


@router.post("/entries/{entry_id}/photo")
async def upload_entry_photo(
    entry_id: str,
    file: UploadFile = File(...),
    db: ScoringDB = Depends(get_db),
    storage: PhotoStorage = Depends(get_storage)
) -> Dict[str, Any]:
    """Compress, upload and attach a photo; the previous photo is removed"""
    entry = await db.get_entry(entry_id)
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Empty file")

    uploaded = await storage.upload_entry_photo(data, entry["competition_id"], entry_id)

    old_path = storage.path_from_url(entry.get("photo_url"))
    if old_path and old_path != uploaded["path"]:
        await _remove_photo(storage, old_path)

    updated = await db.update_entry(entry_id, {"photo_url": uploaded["url"]})
    return {**uploaded, "entry": updated}


@router.delete("/entries/{entry_id}/photo", status_code=204)
async def delete_entry_photo(
    entry_id: str,
    db: ScoringDB = Depends(get_db),
    storage: PhotoStorage = Depends(get_storage)
):
    entry = await db.get_entry(entry_id)
    path = storage.path_from_url(entry.get("photo_url"))
    if path:
        await storage.delete_photo(path)
    await db.update_entry(entry_id, {"photo_url": None})


@router.post("/competitions/{competition_id}/photos/bulk")
async def bulk_upload_photos(
    competition_id: str,
    entry_ids: List[str] = Form(...),
    files: List[UploadFile] = File(...),
    db: ScoringDB = Depends(get_db),
    storage: PhotoStorage = Depends(get_storage)
) -> Dict[str, Any]:
    """
    Upload photos for several entries; entry_ids[i] owns files[i]

    Unknown entries and entries of other competitions are reported as failed
    without uploading. Each entry's previous photo is removed once the new
    one is attached.
    """
    if len(entry_ids) != len(files):
        raise HTTPException(status_code=400, detail="entry_ids and files must have the same length")

    entries: Dict[str, Dict[str, Any]] = {}
    rejected = []
    payload = []
    for entry_id, upload in zip(entry_ids, files):
        try:
            entry = await db.get_entry(entry_id)
        except RecordNotFoundError as e:
            rejected.append({"id": entry_id, "error": str(e)})
            continue
        if entry.get("competition_id") != competition_id:
            rejected.append({"id": entry_id, "error": f"Entry is not part of competition {competition_id}"})
            continue
        entries[entry_id] = entry
        payload.append((entry_id, await upload.read()))

    results = await storage.bulk_upload_photos(payload, competition_id) if payload else {"success": [], "failed": []}
    results["failed"] = rejected + results["failed"]

    attached = []
    for uploaded in results["success"]:
        entry_id = uploaded["entry_id"]
        try:
            await db.update_entry(entry_id, {"photo_url": uploaded["url"]})
        except DatabaseError as e:
            results["failed"].append({"id": entry_id, "error": str(e)})
            await _remove_photo(storage, uploaded["path"])
            continue
        attached.append(uploaded)

        old_path = storage.path_from_url(entries[entry_id].get("photo_url"))
        if old_path and old_path != uploaded["path"]:
            await _remove_photo(storage, old_path)

    results["success"] = attached
    results["message"] = f"{len(attached)} uploaded, {len(results['failed'])} failed"
    return results


@router.get("/competitions/{competition_id}/photos")
async def list_photos(competition_id: str, storage: PhotoStorage = Depends(get_storage)) -> List[Dict[str, Any]]:
    return await storage.list_competition_photos(competition_id)
