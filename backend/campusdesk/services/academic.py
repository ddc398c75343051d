"""Academic structure: faculties, programs, batches, sessions, semesters,
sections, subjects and program/semester/section allocations.

All seven entity kinds share the same list/get/create/update/delete and
bulk-status operations, so the service is driven by the `KINDS` table
below; kind-specific behaviour (slugs, program links, "current" flags,
delete guards) is layered on top.
"""

from typing import Dict, List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from .. import models, repositories
from ..enums import Status
from ..errors import BusinessRuleError, NotFoundError
from .base import BaseService, log_event

# kind -> (repository class, model, label)
KINDS = {
    'faculties': (repositories.FacultyRepository, models.Faculty, 'Faculty'),
    'programs': (repositories.ProgramRepository, models.Program, 'Program'),
    'batches': (repositories.BatchRepository, models.Batch, 'Batch'),
    'sessions': (repositories.AcademicSessionRepository, models.AcademicSession, 'Academic session'),
    'semesters': (repositories.SemesterRepository, models.Semester, 'Semester'),
    'sections': (repositories.SectionRepository, models.Section, 'Section'),
    'subjects': (repositories.SubjectRepository, models.Subject, 'Subject'),
}

# program many-to-many relation -> id list field accepted on create
PROGRAM_LINKS = {
    'batches': 'batch_ids',
    'semesters': 'semester_ids',
    'sessions': 'session_ids',
    'subjects': 'subject_ids',
}


class AcademicService(BaseService):
    def __init__(self, session: Session):
        super().__init__(session)
        self.repos = {kind: repo_cls(session) for kind, (repo_cls, _, _) in KINDS.items()}
        self.allocations = repositories.ProgramSemesterSectionRepository(session)

    def _kind(self, kind: str):
        if kind not in KINDS:
            raise NotFoundError('Academic kind', kind)
        return self.repos[kind], KINDS[kind][1], KINDS[kind][2]

    # -- generic CRUD --------------------------------------------------

    def list(self, kind: str, status=None, search: Optional[str] = None, page: int = 1,
             per_page: int = 15, registration_open: bool = False, **filters):
        """Page through one kind; `registration_open` keeps programs taking applications."""
        repo, _, _ = self._kind(kind)
        stmt = repo.listing(status=status, search=search, **filters)
        if registration_open and kind == 'programs':
            stmt = repo.registration_open(stmt)
        return repo.paginate(stmt, page, per_page)

    def get(self, kind: str, pk: int):
        repo, _, label = self._kind(kind)
        return self._require(repo, pk, label)

    def create(self, kind: str, data: dict):
        repo, model, label = self._kind(kind)
        data = dict(data)
        links = {name: data.pop(field, None) for name, field in PROGRAM_LINKS.items()} if kind == 'programs' else {}
        make_current = data.pop('is_current', False) if kind in ('sessions', 'semesters') else False
        if make_current and data.get('status', Status.ACTIVE.value) != Status.ACTIVE.value:
            raise BusinessRuleError(f'{label} must be active to become current')
        if kind == 'faculties':
            data['slug'] = self._unique_slug(repo, data['name'])
        elif kind == 'programs':
            self._require(self.repos['faculties'], data['faculty_id'], 'Faculty')
            data['slug'] = self._unique_slug(repo, data['title'])
        elif kind == 'subjects' and repo.exists(code=data['code']):
            raise BusinessRuleError(f"subject code already exists: {data['code']}")
        elif kind == 'sections' and data.get('batch_id'):
            self._require(self.repos['batches'], data['batch_id'], 'Batch')
        obj = model(**data)
        for name, ids in links.items():
            if ids:
                setattr(obj, name, self._link_all(self.repos[name], ids, KINDS[name][2]))
        obj = repo.save(obj)
        if make_current:
            obj = self._set_current(kind, obj.id)
        log_event("academic_created", kind=kind, id=obj.id)
        return obj

    def update(self, kind: str, pk: int, data: dict):
        repo, _, label = self._kind(kind)
        obj = self._require(repo, pk, label)
        data = dict(data)
        if kind == 'faculties' and data.get('name') and data['name'] != obj.name:
            data['slug'] = self._unique_slug(repo, data['name'], exclude_id=obj.id)
        if kind == 'programs':
            if data.get('faculty_id'):
                self._require(self.repos['faculties'], data['faculty_id'], 'Faculty')
            if data.get('title') and data['title'] != obj.title:
                data['slug'] = self._unique_slug(repo, data['title'], exclude_id=obj.id)
        if kind == 'subjects' and data.get('code') and data['code'] != obj.code and repo.exists(code=data['code']):
            raise BusinessRuleError(f"subject code already exists: {data['code']}")
        obj = repo.save(self._apply(obj, data))
        log_event("academic_updated", kind=kind, id=obj.id, fields=sorted(data))
        return obj

    def delete(self, kind: str, pk: int) -> None:
        repo, _, label = self._kind(kind)
        obj = self._require(repo, pk, label)
        self._guard_delete(kind, obj)
        repo.delete(obj)
        log_event("academic_deleted", kind=kind, id=pk)

    def _count(self, model, **columns) -> int:
        stmt = select(func.count()).select_from(model)
        for name, value in columns.items():
            stmt = stmt.where(getattr(model, name) == value)
        return self.session.exec(stmt).one()

    def _guard_delete(self, kind: str, obj) -> None:
        if kind == 'faculties' and obj.programs:
            raise BusinessRuleError('Cannot delete faculty that contains programs. Please delete all programs first.')
        if kind == 'programs' and self._count(models.Student, program_id=obj.id):
            raise BusinessRuleError('Cannot delete program that has students.')
        if kind == 'batches' and self._count(models.Student, batch_id=obj.id):
            raise BusinessRuleError('Cannot delete batch that has students.')
        if kind == 'sessions' and self._count(models.StudentEnroll, session_id=obj.id):
            raise BusinessRuleError('Cannot delete academic session that has enrollments.')
        if kind == 'semesters' and self._count(models.StudentEnroll, semester_id=obj.id):
            raise BusinessRuleError('Cannot delete semester that has enrollments.')
        if kind == 'sections' and self._count(models.StudentEnroll, section_id=obj.id):
            raise BusinessRuleError('Cannot delete section that has enrollments.')

    def bulk_update_status(self, kind: str, ids: List[int], status) -> int:
        repo, model, _ = self._kind(kind)
        value = getattr(status, 'value', status)
        rows = self.session.exec(select(model).where(model.id.in_(ids))).all()
        for row in rows:
            row.status = value
            self.session.add(row)
        self.session.commit()
        log_event("academic_bulk_status", kind=kind, count=len(rows), status=value)
        return len(rows)

    # -- program links -------------------------------------------------

    def attach(self, program_id: int, relation: str, ids: List[int]) -> models.Program:
        """Add rows to one of the program's many-to-many relations."""
        if relation not in PROGRAM_LINKS:
            raise NotFoundError('Program relation', relation)
        program = self.get('programs', program_id)
        current = getattr(program, relation)
        have = {r.id for r in current}
        for row in self._link_all(self.repos[relation], ids, KINDS[relation][2]):
            if row.id not in have:
                current.append(row)
        program = self.repos['programs'].save(program)
        log_event("program_attached", program_id=program.id, relation=relation, ids=list(ids))
        return program

    def detach(self, program_id: int, relation: str, ids: List[int]) -> models.Program:
        if relation not in PROGRAM_LINKS:
            raise NotFoundError('Program relation', relation)
        program = self.get('programs', program_id)
        drop = set(ids)
        setattr(program, relation, [r for r in getattr(program, relation) if r.id not in drop])
        program = self.repos['programs'].save(program)
        log_event("program_detached", program_id=program.id, relation=relation, ids=list(ids))
        return program

    # -- current session / semester ------------------------------------

    def _set_current(self, kind: str, pk: int):
        repo, model, label = self._kind(kind)
        obj = self._require(repo, pk, label)
        if obj.status != Status.ACTIVE.value:
            raise BusinessRuleError(f'{label} must be active to become current')
        for other in self.session.exec(select(model).where(model.is_current == True)).all():  # noqa: E712
            other.is_current = False
            self.session.add(other)
        obj.is_current = True
        obj = repo.save(obj)
        log_event("academic_current_set", kind=kind, id=obj.id)
        return obj

    def set_current_session(self, pk: int) -> models.AcademicSession:
        return self._set_current('sessions', pk)

    def set_current_semester(self, pk: int) -> models.Semester:
        return self._set_current('semesters', pk)

    def current_session(self) -> Optional[models.AcademicSession]:
        return self.repos['sessions'].current()

    def current_semester(self) -> Optional[models.Semester]:
        return self.repos['semesters'].current()

    # -- allocations ---------------------------------------------------

    def allocate_section(self, program_id: int, semester_id: int, section_id: int) -> models.ProgramSemesterSection:
        self.get('programs', program_id)
        self.get('semesters', semester_id)
        self.get('sections', section_id)
        if self.allocations.exists(program_id=program_id, semester_id=semester_id, section_id=section_id):
            raise BusinessRuleError('section already allocated to this program and semester')
        row = models.ProgramSemesterSection(program_id=program_id, semester_id=semester_id, section_id=section_id)
        return self.allocations.save(row)

    def list_allocations(self, program_id=None, semester_id=None) -> List[models.ProgramSemesterSection]:
        stmt = self.allocations.filter_by(self.allocations.query(), program_id=program_id, semester_id=semester_id)
        return self.allocations.all(self.allocations.ordered(stmt))

    def remove_allocation(self, pk: int) -> None:
        row = self._require(self.allocations, pk, 'Allocation')
        self.allocations.delete(row)

    # -- statistics ----------------------------------------------------

    def statistics(self) -> Dict[str, dict]:
        out = {}
        for kind in KINDS:
            repo = self.repos[kind]
            by_status = repo.count_by_status()
            out[kind] = {
                'total': sum(by_status.values()),
                'active': by_status.get(Status.ACTIVE.value, 0),
                'inactive': by_status.get(Status.INACTIVE.value, 0),
            }
        current_session = self.current_session()
        current_semester = self.current_semester()
        out['current'] = {
            'session': current_session.name if current_session else None,
            'semester': current_semester.name if current_semester else None,
        }
        return out
