from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime
from sajag.extensions import db
from .base import TimestampMixin, RoleEnum, new_id


class Profile(db.Model, TimestampMixin):
    __tablename__ = 'profiles'

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(120), unique=True, nullable=False)
    full_name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.Enum(RoleEnum), nullable=False, default=RoleEnum.field_officer)
    organization = db.Column(db.String(120), nullable=True)
    state = db.Column(db.String(80), nullable=True)
    district = db.Column(db.String(80), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    password_hash = db.Column(db.String(512), nullable=False)

    audit_logs = db.relationship('AuditLog', backref='profile', lazy=True)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role.value if self.role else None,
            "organization": self.organization,
            "state": self.state,
            "district": self.district,
            "phone": self.phone,
        }


class TokenBlocklist(db.Model):
    __tablename__ = 'token_blocklist'

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(36), nullable=False, index=True)
    token_type = db.Column(db.String(10), nullable=False, default="access")
    profile_id = db.Column(db.String(36), db.ForeignKey('profiles.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)

    profile = db.relationship("Profile", backref="revoked_tokens")
