from fastapi import APIRouter, HTTPException, Depends
from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from dependencies import get_current_user
from engine.models import FieldType
from db.categories import (
    get_user_categories as db_get_user_categories,
    get_templates as db_get_templates,
    get_category as db_get_category,
    create_category as db_create_category,
    clone_template as db_clone_template,
    update_category as db_update_category,
    delete_category as db_delete_category,
    get_category_stats as db_get_category_stats,
    get_fields_for_category as db_get_fields,
    create_field as db_create_field,
    update_field as db_update_field,
    delete_field as db_delete_field,
    reorder_fields as db_reorder_fields,
)
from db.items import (
    get_items as db_get_items,
    get_item as db_get_item,
    create_item as db_create_item,
    update_item as db_update_item,
    delete_item as db_delete_item,
)

router = APIRouter(prefix="/api", tags=["categories"])


# --- Pydantic Models ---

class FieldInput(BaseModel):
    name: str
    label: str
    field_type: FieldType
    placeholder: Optional[str] = None
    options: Optional[Any] = None
    required: bool = False
    order_index: int = 0


class FieldUpdate(BaseModel):
    name: Optional[str] = None
    label: Optional[str] = None
    field_type: Optional[FieldType] = None
    placeholder: Optional[str] = None
    options: Optional[Any] = None
    required: Optional[bool] = None
    order_index: Optional[int] = None


class CategoryCreate(BaseModel):
    name: str
    icon: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None
    fields: List[FieldInput] = []


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None


class CloneTemplate(BaseModel):
    name: Optional[str] = None


class ReorderFields(BaseModel):
    field_ids: List[str]


class ItemInput(BaseModel):
    data: Dict[str, Any]
    cover_image_url: Optional[str] = None
    cover_image_path: Optional[str] = None
    api_source: Optional[str] = None
    api_id: Optional[str] = None


def _owned_category(category_id: str, user_id: int) -> Dict[str, Any]:
    category = db_get_category(category_id, user_id)
    if category is None or category['is_template']:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


# --- Categories ---

@router.get("/categories")
async def list_categories(current_user: Dict[str, Any] = Depends(get_current_user)) -> List[Dict[str, Any]]:
    """Current user's own categories, newest first"""
    return db_get_user_categories(current_user['id'])


@router.get("/categories/templates")
async def list_templates(current_user: Dict[str, Any] = Depends(get_current_user)) -> List[Dict[str, Any]]:
    return db_get_templates()


@router.post("/categories", status_code=201)
async def create_category(
    data: CategoryCreate,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, Any]:
    if not data.name.strip():
        raise HTTPException(status_code=400, detail="Category name is required")
    return db_create_category(
        current_user['id'],
        data.name,
        icon=data.icon,
        color=data.color,
        description=data.description,
        fields=[f.model_dump() for f in data.fields],
    )


@router.post("/categories/templates/{template_id}/clone", status_code=201)
async def clone_template(
    template_id: str,
    data: CloneTemplate,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, Any]:
    """Copy a template into a new category owned by the current user"""
    category = db_clone_template(template_id, current_user['id'], custom_name=data.name)
    if category is None:
        raise HTTPException(status_code=404, detail="Template not found")
    return category


@router.get("/categories/{category_id}")
async def get_category(
    category_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, Any]:
    category = db_get_category(category_id, current_user['id'])
    if category is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.put("/categories/{category_id}")
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, Any]:
    _owned_category(category_id, current_user['id'])
    updates = data.model_dump(exclude_none=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")
    db_update_category(category_id, current_user['id'], **updates)
    return db_get_category(category_id, current_user['id'])


@router.delete("/categories/{category_id}")
async def delete_category(
    category_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, str]:
    """Delete a category with all of its items"""
    if not db_delete_category(category_id, current_user['id']):
        raise HTTPException(status_code=404, detail="Category not found")
    return {"message": "Category deleted"}


@router.get("/categories/{category_id}/stats")
async def get_category_stats(
    category_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, int]:
    _owned_category(category_id, current_user['id'])
    return db_get_category_stats(category_id)


# --- Fields ---

@router.get("/categories/{category_id}/fields")
async def list_fields(
    category_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> List[Dict[str, Any]]:
    if db_get_category(category_id, current_user['id']) is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return db_get_fields(category_id)


@router.post("/categories/{category_id}/fields", status_code=201)
async def create_field(
    category_id: str,
    data: FieldInput,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, Any]:
    _owned_category(category_id, current_user['id'])
    field = db_create_field(category_id, **data.model_dump())
    if field is None:
        raise HTTPException(status_code=400, detail="Invalid field definition")
    return field


@router.put("/categories/{category_id}/fields/{field_id}")
async def update_field(
    category_id: str,
    field_id: str,
    data: FieldUpdate,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, str]:
    _owned_category(category_id, current_user['id'])
    if not db_update_field(field_id, category_id, **data.model_dump(exclude_unset=True)):
        raise HTTPException(status_code=404, detail="Field not found")
    return {"message": "Field updated"}


@router.delete("/categories/{category_id}/fields/{field_id}")
async def delete_field(
    category_id: str,
    field_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, str]:
    _owned_category(category_id, current_user['id'])
    if not db_delete_field(field_id, category_id):
        raise HTTPException(status_code=404, detail="Field not found")
    return {"message": "Field deleted"}


@router.put("/categories/{category_id}/fields-order")
async def reorder_fields(
    category_id: str,
    data: ReorderFields,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> List[Dict[str, Any]]:
    _owned_category(category_id, current_user['id'])
    if not db_reorder_fields(category_id, data.field_ids):
        raise HTTPException(status_code=400, detail="Failed to reorder fields")
    return db_get_fields(category_id)


# --- Items ---

@router.get("/categories/{category_id}/items")
async def list_items(
    category_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> List[Dict[str, Any]]:
    _owned_category(category_id, current_user['id'])
    return db_get_items(category_id)


@router.post("/categories/{category_id}/items", status_code=201)
async def create_item(
    category_id: str,
    data: ItemInput,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, Any]:
    _owned_category(category_id, current_user['id'])
    return db_create_item(category_id, current_user['id'], **data.model_dump())


@router.get("/items/{item_id}")
async def get_item(
    item_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, Any]:
    item = db_get_item(item_id, current_user['id'])
    if item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return item


@router.put("/items/{item_id}")
async def update_item(
    item_id: str,
    data: ItemInput,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, Any]:
    if not db_update_item(item_id, current_user['id'], **data.model_dump(exclude_unset=True)):
        raise HTTPException(status_code=404, detail="Item not found")
    return db_get_item(item_id, current_user['id'])


@router.delete("/items/{item_id}")
async def delete_item(
    item_id: str,
    current_user: Dict[str, Any] = Depends(get_current_user)
) -> Dict[str, str]:
    if not db_delete_item(item_id, current_user['id']):
        raise HTTPException(status_code=404, detail="Item not found")
    return {"message": "Item deleted"}
